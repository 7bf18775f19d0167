"""Effective feature sets of declared dependencies.

Features reach a build in four ways, depending on whether default features
are left on and whether features are listed explicitly:

    defaults off, no list   -> nothing
    defaults off, list      -> the listed features and what they imply
    defaults on,  no list   -> what "default" implies
    defaults on,  list      -> both of the above

Only public features (keys of the dependency's feature graph) are returned.
Entries such as "dep:foo" or "foo/bar" are never keys and drop out.
"""

from collections.abc import Collection

from featureprune.manifest.model import Manifest
from featureprune.models.dependency import (
    DeclarationKind,
    DependencyDeclaration,
    FeatureGraph,
)

DEFAULT_FEATURE = "default"


def resolve_effective_features(
    declaration: DependencyDeclaration,
    graph: FeatureGraph | None,
    excluded: Collection[str] = (),
) -> frozenset[str] | None:
    """Public features enabled for one dependency.

    Returns None when the dependency is excluded, has no feature graph, or is
    inherited from the workspace (its features live in another manifest).
    """
    if declaration.name in excluded or declaration.package_name in excluded:
        return None
    if graph is None:
        return None
    if declaration.kind is DeclarationKind.INHERITED:
        return None

    enabled: set[str] = set()

    for feature in declaration.features:
        if feature in graph.features:
            enabled.add(feature)
            enabled |= graph.implied_public(feature)

    if declaration.default_features:
        enabled |= graph.implied_public(DEFAULT_FEATURE)

    return frozenset(enabled)


def resolve_package(
    manifest: Manifest,
    graphs: dict[str, FeatureGraph],
    excluded: Collection[str] = (),
) -> dict[str, frozenset[str]]:
    """Effective features of every dependency that has something to prune."""
    resolved: dict[str, frozenset[str]] = {}
    for name, declaration in manifest.dependencies.items():
        features = resolve_effective_features(
            declaration, graphs.get(declaration.package_name), excluded
        )
        if features:
            resolved[name] = features
    return resolved
