import pytest

from movie_search.models.movie import ENRICHMENT_FIELDS, MovieSummary
from movie_search.services.enricher import DetailEnricher

from fakes import FakeProvider, NOT_FOUND, detail_payload, summary


@pytest.mark.asyncio
async def test_enrich_merges_detail_fields():
    enricher = DetailEnricher(FakeProvider())

    movie = await enricher.enrich(MovieSummary(**summary("tt0468569")))

    assert movie.imdbID == "tt0468569"
    assert movie.Title == "Title tt0468569"
    assert movie.Director == "Christopher Nolan"
    assert movie.imdbRating == "9.0"
    assert movie.is_enriched
    # Fields outside the enrichment set are not merged
    assert "Metascore" not in movie.model_dump()


@pytest.mark.asyncio
async def test_enrich_never_changes_id():
    other = detail_payload("tt9999999")
    enricher = DetailEnricher(FakeProvider(details={"tt1": other}))

    movie = await enricher.enrich(MovieSummary(**summary("tt1")))

    assert movie.imdbID == "tt1"
    assert movie.Title == "Title tt1"
    assert movie.Plot == "Plot of tt9999999"


@pytest.mark.asyncio
async def test_failed_lookup_keeps_summary_only():
    enricher = DetailEnricher(FakeProvider(failing_ids={"tt1"}))

    movie = await enricher.enrich(MovieSummary(**summary("tt1")))

    assert movie.model_dump(exclude_none=True) == summary("tt1")
    assert all(getattr(movie, name) is None for name in ENRICHMENT_FIELDS)


@pytest.mark.asyncio
async def test_not_found_detail_keeps_summary_only():
    enricher = DetailEnricher(FakeProvider(details={"tt1": NOT_FOUND}))

    movie = await enricher.enrich(MovieSummary(**summary("tt1")))

    assert not movie.is_enriched


@pytest.mark.asyncio
async def test_enrich_many_preserves_input_order():
    delays = {"a": 0.03, "b": 0.02, "c": 0.01, "d": 0}
    enricher = DetailEnricher(FakeProvider(delays=delays))

    movies = await enricher.enrich_many([MovieSummary(**summary(i)) for i in "abcd"])

    assert [m.imdbID for m in movies] == ["a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_enrich_many_is_bounded():
    provider = FakeProvider(delays={str(i): 0.01 for i in range(6)})
    enricher = DetailEnricher(provider, concurrency=2)

    movies = await enricher.enrich_many([MovieSummary(**summary(str(i))) for i in range(6)])

    assert len(movies) == 6
    assert provider.max_in_flight == 2


@pytest.mark.asyncio
async def test_enrich_many_runs_concurrently():
    provider = FakeProvider(delays={str(i): 0.01 for i in range(10)})
    enricher = DetailEnricher(provider)

    await enricher.enrich_many([MovieSummary(**summary(str(i))) for i in range(10)])

    assert provider.max_in_flight == 10


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError, match="concurrency must be at least 1"):
        DetailEnricher(FakeProvider(), concurrency=0)
