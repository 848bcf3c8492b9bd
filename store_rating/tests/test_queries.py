from sqlalchemy.dialects import postgresql
from store_rating.query.aggregation import store_search_statement
from store_rating.query.listing import admin_stores_listing, Sorting
from store_rating.models.store import Store


def compile_pg(statement):
    return str(statement.compile(dialect=postgresql.dialect()))

def test_average_rating_counts_only_active_ratings():
    sql = compile_pg(admin_stores_listing().statement)
    assert "coalesce(round(avg(ratings.score)" in sql
    assert "LEFT OUTER JOIN ratings ON ratings.store_id = stores.id AND ratings.status" in sql
    assert "GROUP BY stores.id" in sql

def test_sort_by_average_rating_uses_output_column():
    listing = admin_stores_listing()
    statement = listing.statement.order_by(*listing.sorting.order_by("average_rating", "asc", listing.tie_breaker))
    assert "ORDER BY average_rating ASC, stores.id ASC" in compile_pg(statement)

def test_unknown_sort_falls_back_to_created_at_descending():
    sorting = Sorting({"name": Store.name, "created_at": Store.created_at})
    (clause,) = sorting.order_by("password_hash", None)
    assert compile_pg(clause) == "stores.created_at DESC"

def test_simple_search_is_limited_to_fifty():
    sql = compile_pg(store_search_statement("coffee"))
    assert "ILIKE" in sql
    assert "ORDER BY stores.name ASC" in sql
    assert 50 in store_search_statement("coffee").compile(dialect=postgresql.dialect()).params.values()

def test_fulltext_search_ranks_results():
    statement = store_search_statement("coffee shop", use_fulltext=True)
    compiled = statement.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "ts_rank_cd(to_tsvector" in sql
    assert "plainto_tsquery" in sql
    assert "@@" in sql
    assert "ORDER BY rank DESC, stores.name ASC" in sql
    assert 20 in compiled.params.values()

def test_only_lowercase_asc_sorts_ascending():
    sorting = Sorting({"name": Store.name, "created_at": Store.created_at})
    assert compile_pg(sorting.order_by("name", "asc")[0]) == "stores.name ASC"
    assert compile_pg(sorting.order_by("name", "ASC")[0]) == "stores.name DESC"
