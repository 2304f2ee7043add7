"""Dependency resolution service."""
from asset_pipeline.domain.entities.directive import Directive, DirectiveKind
from asset_pipeline.domain.entities.source_record import Inclusion, SourceRecord, SourceRole
from asset_pipeline.domain.plugins.base import AssetEnvironment
from asset_pipeline.domain.services.directive_service import parse_directives
from asset_pipeline.infra.common.errors import ArgumentError, ContentTypeMismatch
from asset_pipeline.infra.common.logger import get_logger

logger = get_logger(__name__)


class ResolverContext:
    """
    State of one top-level resolution.

    Tracks visited paths so each file contributes at most once, collects
    records in build order, and records every path linked through a
    directive. Never share a context between two entry assets.
    """

    def __init__(self, ancestors: set[str] | frozenset[str] = frozenset()):
        """
        Initialize empty resolver context.

        Args:
            ancestors: Entry paths of the enclosing resolutions still in
                progress (nested depend_on_asset resolves)
        """
        self.ancestors: set[str] = set(ancestors)
        self.visited: set[str] = set()
        self.records: list[SourceRecord | None] = []
        self.dependencies: dict[str, SourceRecord] = {}
        self.links: list[str] = []
        self.content_type: str | None = None

    def mark_visited(self, path: str) -> bool:
        """
        Mark a path as visited.

        Returns:
            True if the path was not visited before
        """
        if path in self.visited:
            return False
        self.visited.add(path)
        return True

    def add_link(self, path: str) -> None:
        """Record a linked path once, in first-seen order."""
        if path not in self.links:
            self.links.append(path)

    def reserve(self) -> int:
        """Reserve a slot in the build order and return its index."""
        self.records.append(None)
        return len(self.records) - 1

    def ordered_records(self) -> list[SourceRecord]:
        """
        Records in build order.

        Dependency-only records follow the emitted ones, unless the same
        path was also reached through an emitting directive.
        """
        ordered = [record for record in self.records if record is not None]
        ordered.extend(
            record for path, record in self.dependencies.items() if path not in self.visited
        )
        return ordered


class DependencyResolver:
    """Expands an entry file into its ordered, deduplicated source records."""

    def __init__(self, environment: AssetEnvironment):
        """
        Initialize resolver.

        Args:
            environment: Render and path resolution collaborator
        """
        self.environment = environment

    def resolve(self, entry_path: str, context: ResolverContext | None = None) -> list[SourceRecord]:
        """
        Resolve an entry file.

        Dependencies come before the files that require them; a file reached
        more than once (including through a cycle) contributes only at its
        first position.

        Args:
            entry_path: Absolute path of the entry file
            context: Resolver context (a fresh one is created if None)

        Returns:
            Source records in build order
        """
        if context is None:
            context = ResolverContext()
        context.ancestors.add(entry_path)
        self._visit(entry_path, context, "bundle")
        return context.ordered_records()

    def _visit(self, path: str, context: ResolverContext, role: SourceRole) -> None:
        if not context.mark_visited(path):
            return

        rendered = self.environment.render(path)
        if context.content_type is None:
            context.content_type = rendered.content_type
        elif rendered.content_type != context.content_type:
            raise ContentTypeMismatch(
                f"{path} is '{rendered.content_type}', not '{context.content_type}'"
            )

        if rendered.data is not None:
            context.records.append(
                SourceRecord(
                    path=path,
                    body="",
                    content_type=rendered.content_type,
                    format_extension=rendered.format_extension,
                    mtime=rendered.mtime,
                    role=role,
                    data=rendered.data,
                )
            )
            return

        scan = parse_directives(rendered.text)
        inclusions: list[Inclusion] = []
        self_slot: int | None = None

        for directive in scan.directives:
            if directive.kind == DirectiveKind.REQUIRE_SELF:
                if self_slot is not None:
                    raise ArgumentError(f"require_self can only be used once ({path}:{directive.line})")
                self_slot = context.reserve()
            elif directive.kind == DirectiveKind.INCLUDE:
                target = self._resolve_target(directive, path, rendered.format_extension)
                context.add_link(target)
                if target in context.visited:
                    logger.debug("Skipping include of already visited %s", target)
                    continue
                self._visit(target, context, "inline")
                inclusions.append(Inclusion(offset=directive.insertion_offset, path=target))
            else:
                self._apply(directive, path, rendered.format_extension, context)

        record = SourceRecord(
            path=path,
            body=scan.body,
            content_type=rendered.content_type,
            format_extension=rendered.format_extension,
            mtime=rendered.mtime,
            role=role,
            inclusions=inclusions,
        )
        if self_slot is None:
            context.records.append(record)
        else:
            context.records[self_slot] = record

    def _apply(
        self,
        directive: Directive,
        path: str,
        format_extension: str | None,
        context: ResolverContext,
    ) -> None:
        """Apply an ordering directive (everything except include and require_self)."""
        kind = directive.kind

        if kind in (DirectiveKind.REQUIRE_TREE, DirectiveKind.REQUIRE_DIRECTORY):
            directory = self.environment.resolve_directory(directive.argument, path)
            recursive = kind == DirectiveKind.REQUIRE_TREE
            for entry in self.environment.each_entry(directory, recursive):
                if self.environment.content_type_of(entry) != context.content_type:
                    continue
                context.add_link(entry)
                self._visit(entry, context, "bundle")
            return

        target = self._resolve_target(directive, path, format_extension)
        context.add_link(target)

        if kind == DirectiveKind.REQUIRE:
            self._visit(target, context, "bundle")
        elif kind == DirectiveKind.DEPEND_ON:
            self._depend_on(target, context)
        elif kind == DirectiveKind.DEPEND_ON_ASSET:
            if target in context.ancestors or target in context.visited:
                logger.debug("Skipping depend_on_asset %s, already being resolved", target)
                return
            for record in self.resolve(target, ResolverContext(context.ancestors)):
                self._depend_on(record.path, context)
        # link only declares a companion asset; it neither orders nor emits text

    def _depend_on(self, path: str, context: ResolverContext) -> None:
        """Track a file for freshness and digest without emitting its text."""
        if path in context.visited or path in context.dependencies:
            return
        rendered = self.environment.render(path)
        context.dependencies[path] = SourceRecord(
            path=path,
            body=rendered.text,
            content_type=rendered.content_type,
            format_extension=rendered.format_extension,
            mtime=rendered.mtime,
            role="dependency",
            data=rendered.data,
        )

    def _resolve_target(self, directive: Directive, path: str, format_extension: str | None) -> str:
        if not directive.argument:
            raise ArgumentError(f"{directive.kind.value} requires an argument ({path}:{directive.line})")
        return self.environment.resolve_argument(directive.argument, path, format_extension)
