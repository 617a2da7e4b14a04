"""
Multi-provider lyrics lookup.

The LyricsAggregator fans a query out to several lyrics providers in
parallel, collects their results, picks the best one and hands it to an
optional store.

Architecture:
    - Each provider implements the LyricsProvider protocol: search for
      candidates, fetch the raw payload of one candidate, convert it.
    - resolve_with_provider() runs one provider end to end, using the
      SongMatcher to pick the candidate to fetch.
    - Providers run in a ThreadPoolExecutor; a provider that raises is
      logged and treated as having found nothing, so one failing provider
      never prevents evaluating the others.
    - select_best() picks the final result once every provider finished.

Network access and storage are the providers' and the store's concern;
this module only orchestrates them.

Usage:
    aggregator = LyricsAggregator(providers, SongMatcher(), store=my_store)
    # or, with sources and worker count from config.yaml
    aggregator = LyricsAggregator.from_config(load_config(), providers, store=my_store)
    outcome = aggregator.lookup(Query("Shape of You", "Ed Sheeran", duration_seconds=233))
    if outcome.found:
        document = outcome.result.data
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Protocol

from lyrics_aggregator.core.config import DEFAULT_SOURCES, Config
from lyrics_aggregator.core.exceptions import ProviderError
from lyrics_aggregator.core.logger import get_logger, log_lookup_failure
from lyrics_aggregator.lyrics.cache_key import generate_cache_key
from lyrics_aggregator.lyrics.models import ConversionResult
from lyrics_aggregator.lyrics.selector import (
    ExactMetadata,
    ProviderResult,
    resolve_cache_metadata,
    select_best,
)
from lyrics_aggregator.matching.models import Candidate, Query
from lyrics_aggregator.matching.scorer import SongMatcher


logger = get_logger(__name__)


class LyricsProvider(Protocol):
    """A lyrics source the aggregator can query."""

    name: str

    def search(self, query: Query) -> list[Candidate]:
        """Return the provider's candidates for a query."""
        ...

    def fetch_raw(self, candidate: Candidate) -> Any:
        """Fetch the raw lyrics payload of a matched candidate."""
        ...

    def convert(self, payload: Any) -> ConversionResult:
        """Convert a raw payload into a lyrics document."""
        ...


class LyricsStore(Protocol):
    """Persistent cache of lyrics results."""

    def lookup_cached(self, query: Query) -> ProviderResult | None:
        ...

    def persist(self, cache_key: str, result: ProviderResult) -> None:
        ...


@dataclass(frozen=True)
class LookupOutcome:
    """
    Result of LyricsAggregator.lookup().

    Attributes:
        found: True when some provider returned lyrics.
        result: The selected provider result, when found.
        cache_key: Key the result is stored under, when found.
        searched_sources: Sources that were queried.
        message: Human-readable summary.
    """

    found: bool
    result: ProviderResult | None
    cache_key: str | None
    searched_sources: tuple[str, ...]
    message: str


def resolve_with_provider(
    provider: LyricsProvider,
    query: Query,
    matcher: SongMatcher,
) -> ProviderResult | None:
    """
    Run one provider for a query: search, match, fetch and convert.

    Returns:
        A ProviderResult; None when the provider has no confident match.
        A failed conversion yields an unsuccessful result.
    """
    candidates = provider.search(query)
    match = matcher.find_best_match(candidates, query)
    if match is None:
        logger.debug(f"[{provider.name}] No confident match for {query.label}")
        return None

    candidate = match.candidate
    payload = provider.fetch_raw(candidate)
    conversion = provider.convert(payload)
    if not conversion.ok:
        logger.warning(f"[{provider.name}] Conversion failed for {candidate.label}: {conversion.error}")
        return ProviderResult(success=False, data=None, source=provider.name, raw_payload=payload)

    return ProviderResult(
        success=True,
        data=conversion.document,
        source=provider.name,
        raw_payload=payload,
        exact_metadata=ExactMetadata(
            title=candidate.title or None,
            artist=candidate.artist or None,
            album=candidate.album,
            duration_ms=candidate.duration_ms,
        ),
    )


class LyricsAggregator:
    """
    Fans a lookup out to several providers and keeps the best result.

    Attributes:
        providers: Registered providers by source name.
        matcher: Matcher used to pick each provider's candidate.
        store: Optional persistent cache.
        max_workers: Maximum number of providers queried at once.
        sources: Source names queried when lookup() is given none.
    """

    def __init__(
        self,
        providers: list[LyricsProvider],
        matcher: SongMatcher | None = None,
        store: LyricsStore | None = None,
        max_workers: int = 5,
        sources: tuple[str, ...] = DEFAULT_SOURCES,
    ) -> None:
        self.providers = {provider.name: provider for provider in providers}
        self.matcher = matcher or SongMatcher()
        self.store = store
        self.max_workers = max_workers
        self.sources = tuple(sources)

    @classmethod
    def from_config(
        cls,
        config: Config,
        providers: list[LyricsProvider],
        store: LyricsStore | None = None,
    ) -> "LyricsAggregator":
        """
        Create an aggregator from the loaded configuration.

        The matcher uses the matching section; the source list and worker
        count come from the lyrics section.
        """
        return cls(
            providers,
            matcher=SongMatcher(config.matching),
            store=store,
            max_workers=config.lyrics.max_workers,
            sources=config.lyrics.sources,
        )

    def _run_provider(self, provider: LyricsProvider, query: Query) -> ProviderResult | None:
        try:
            return resolve_with_provider(provider, query, self.matcher)
        except ProviderError as e:
            logger.warning(f"{provider.name}: {e.message}")
            return None
        except Exception as e:
            logger.error(f"Error fetching from {provider.name}: {e}")
            logger.debug("Provider failure", exc_info=True)
            return None

    def _gather(self, sources: tuple[str, ...], query: Query) -> list[ProviderResult | None]:
        """Run the providers in parallel and return their results in source order."""
        providers = [self.providers[source] for source in sources]
        if not providers:
            return []

        results: dict[str, ProviderResult | None] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(providers))) as executor:
            futures = {
                executor.submit(self._run_provider, provider, query): provider.name
                for provider in providers
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return [results[source] for source in sources]

    def lookup(self, query: Query, sources: list[str] | None = None) -> LookupOutcome:
        """
        Look up lyrics for a query.

        The store is consulted first when one is configured. Otherwise every
        requested source is queried, the best result is selected, and it is
        persisted unless it already came from a persistent cache.

        Args:
            query: Song to look up.
            sources: Source names to query, in preference order; the
                     aggregator's configured sources when omitted.

        Returns:
            LookupOutcome describing the selected result, or why none was found.
        """
        requested = tuple(sources or self.sources)
        active = []
        for source in requested:
            if source in self.providers:
                active.append(source)
            else:
                logger.warning(f"Unknown lyrics source '{source}', skipping")
        active = tuple(active)

        logger.debug(f"Looking for: {query.label} in {', '.join(active) or 'no sources'}")

        if self.store is not None:
            cached = self.store.lookup_cached(query)
            if cached is not None and cached.has_lyrics:
                logger.info(f"Cache hit for {query.label}")
                return self._found(cached, query, requested)

        best = select_best(self._gather(active, query))
        if best is None:
            message = f"Lyrics not found in sources: {', '.join(requested)}"
            log_lookup_failure(logger, query.title, query.artist, list(requested))
            return LookupOutcome(
                found=False,
                result=None,
                cache_key=None,
                searched_sources=requested,
                message=message,
            )

        outcome = self._found(best, query, requested)
        if self.store is not None and outcome.cache_key and not best.data.cached.is_stored:
            try:
                self.store.persist(outcome.cache_key, best)
            except Exception as e:
                logger.error(f"Failed to save lyrics from {best.source}: {e}")
        return outcome

    def _found(self, result: ProviderResult, query: Query, sources: tuple[str, ...]) -> LookupOutcome:
        metadata = resolve_cache_metadata(result, query)
        cache_key = generate_cache_key(
            metadata.title, metadata.artist, metadata.album, metadata.duration_seconds
        )
        return LookupOutcome(
            found=True,
            result=result,
            cache_key=cache_key,
            searched_sources=sources,
            message=f"Lyrics found in {result.source}",
        )
