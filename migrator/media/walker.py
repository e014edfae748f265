from collections.abc import Sequence

from migrator.logging.logger import Log
from migrator.media import data_uri
from migrator.media.base import BaseBlobSink
from migrator.media.exceptions import BlobWriteError, DecodeError, MalformedURIError
from migrator.media.models import DocumentValue, TransformResult
from migrator.media.rules import ExtractionRule, LeafContext, Path, format_path

_REFERENCE_PREFIXES = ("/", "http://", "https://")


def _is_reference(value: str) -> bool:
    """Empty strings and URLs/paths count as already migrated."""
    return not value or value.startswith(_REFERENCE_PREFIXES)


class TreeWalker:
    """Walks an untyped document tree and extracts embedded images in place.

    Maps and lists are mutated in place; the returned `TransformResult.value`
    is the same object unless the root itself is a rewritten string.
    """

    def __init__(self, sink: BaseBlobSink) -> None:
        self._sink = sink

    def transform(
        self,
        value: DocumentValue,
        rules: Sequence[ExtractionRule],
    ) -> TransformResult:
        result = TransformResult(value=value)
        result.value = self._visit(value, (), None, rules, result)
        return result

    def _visit(
        self,
        node: DocumentValue,
        path: Path,
        parent: DocumentValue,
        rules: Sequence[ExtractionRule],
        result: TransformResult,
    ) -> DocumentValue:
        if isinstance(node, dict):
            for key in list(node):
                node[key] = self._visit(node[key], (*path, key), node, rules, result)
            return node
        if isinstance(node, list):
            for index, item in enumerate(node):
                node[index] = self._visit(item, (*path, index), node, rules, result)
            return node
        if isinstance(node, str):
            return self._visit_leaf(node, LeafContext(path=path, parent=parent), rules, result)
        return node

    def _visit_leaf(
        self,
        leaf: str,
        context: LeafContext,
        rules: Sequence[ExtractionRule],
        result: TransformResult,
    ) -> DocumentValue:
        rule = next((r for r in rules if r.matches(context.path)), None)
        if rule is None:
            return leaf

        where = format_path(context.path)
        if not data_uri.is_embedded_image(leaf):
            if rule.strict and not _is_reference(leaf):
                error = MalformedURIError("value is not an embedded image data URI")
                self._record_error(result, rule, where, error)
            return leaf

        try:
            decoded = data_uri.decode(leaf)
            ext = data_uri.classify_extension(decoded.mime_type)
            ref = self._sink.store(rule.prefix(context), decoded.payload, ext)
        except (DecodeError, BlobWriteError) as exc:
            self._record_error(result, rule, where, exc)
            return leaf

        result.changed = True
        result.extracted += 1
        Log.info(f"Extracted {where} ({len(decoded.payload)} bytes) -> {ref.public_path}")
        return rule.rewrite(ref)

    @staticmethod
    def _record_error(
        result: TransformResult,
        rule: ExtractionRule,
        where: str,
        exc: Exception,
    ) -> None:
        message = f"{rule.name} {where}: {type(exc).__name__}: {exc}"
        result.errors.append(message)
        Log.warning(f"Skipping {message}")
