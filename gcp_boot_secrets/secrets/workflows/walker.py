"""Recursive resolution of secret references in a configuration tree."""
import logging
from collections import defaultdict
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterator, List, Tuple

from ..domains.caster import cast
from ..domains.errors import ResolutionError
from ..domains.models import FetchKey, SecretReference
from ..domains.reference import is_reference, parse_reference
from .fetcher import SecretFetcher

logger = logging.getLogger(__name__)

ReferenceHandler = Callable[[Any, str], Any]


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def _rebuild_mapping(node: Mapping, items: List[Tuple[Any, Any]]) -> Mapping:
    if isinstance(node, defaultdict):
        return type(node)(node.default_factory, items)
    return type(node)(items)


def _rebuild_tuple(node: tuple, items: List[Any]) -> tuple:
    if hasattr(node, "_fields"):
        return type(node)(*items)
    return type(node)(items)


def transform(node: Any, on_reference: ReferenceHandler, path: str = "") -> Any:
    """
    Rebuild ``node`` depth-first, replacing every secret reference with
    ``on_reference(reference_node, path)``.

    Lists, mappings and tuples are rebuilt with the same type, order and
    keys. Mapping keys are never transformed. Anything else is returned as is.
    """
    if is_reference(node):
        return on_reference(node, path)

    if isinstance(node, Mapping):
        items = [(key, transform(value, on_reference, _join(path, key)))
                 for key, value in node.items()]
        return _rebuild_mapping(node, items)

    if isinstance(node, list):
        return [transform(item, on_reference, f"{path}[{i}]") for i, item in enumerate(node)]

    if isinstance(node, tuple):
        items = [transform(item, on_reference, f"{path}[{i}]") for i, item in enumerate(node)]
        return _rebuild_tuple(node, items)

    return node


def _annotated(error: ResolutionError, path: str) -> ResolutionError:
    if error.path is None:
        error.path = path
    return error


def iter_references(node: Any) -> Iterator[Tuple[str, SecretReference]]:
    """
    Yield (path, SecretReference) for every reference in ``node``.

    Raises:
        MalformedReference: On the first marker-led tuple that doesn't parse
    """
    found: List[Tuple[str, SecretReference]] = []

    def collect(ref_node: Any, path: str) -> Any:
        try:
            found.append((path, parse_reference(ref_node)))
        except ResolutionError as e:
            raise _annotated(e, path)
        return ref_node

    transform(node, collect)
    return iter(found)


class ConfigWalker:
    """
    Resolves every secret reference in a configuration tree.

    All references are parsed before anything is fetched, so a malformed
    reference aborts the pass without touching the network. With
    ``max_workers > 1`` unique secrets are prefetched in parallel; the walk
    itself then only reads from the cache.
    """

    def __init__(self, fetcher: SecretFetcher, max_workers: int = 1):
        self.fetcher = fetcher
        self.max_workers = max_workers

    def resolve(self, node: Any) -> Any:
        references = list(iter_references(node))
        unique: Dict[FetchKey, str] = {}
        for path, reference in references:
            unique.setdefault(reference.fetch_key, path)

        logger.info(
            f"Resolving {len(references)} secret references ({len(unique)} unique)"
        )

        if self.max_workers > 1 and len(unique) > 1:
            self._prefetch(unique)

        return transform(node, self._resolve_reference)

    def _prefetch(self, unique: Dict[FetchKey, str]) -> None:
        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="secret-fetch") as executor:
            futures = {key: executor.submit(self.fetcher.fetch, key) for key in unique}
            for key, future in futures.items():
                try:
                    future.result()
                except ResolutionError as e:
                    for pending in futures.values():
                        pending.cancel()
                    raise _annotated(e, unique[key])

    def _resolve_reference(self, node: Any, path: str) -> Any:
        try:
            reference = parse_reference(node)
            key = reference.fetch_key
            return cast(self.fetcher.fetch(key), reference.type_tag, key)
        except ResolutionError as e:
            raise _annotated(e, path)
