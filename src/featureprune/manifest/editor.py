"""Format-preserving editing of a manifest's dependency features.

Built on tomlkit so comments, ordering and whitespace outside the edited
entry survive a round trip.
"""

import structlog
import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import ParseError
from tomlkit.items import InlineTable, Table

from featureprune.errors import (
    DependencyNotFound,
    MalformedDependencyEntry,
    MalformedDocument,
    ManifestParseError,
)

log = structlog.get_logger("featureprune.manifest.editor")

DEPENDENCIES_KEY = "dependencies"


class ManifestEditor:
    """Editable in-memory manifest.

    One editor is created per package and reused for every edit/restore
    cycle. ``restore()`` returns to the snapshot taken at construction, never
    to whatever is currently on disk.
    """

    def __init__(self, text: str) -> None:
        self._original_text = text
        self._document = self._parse(text)
        if not isinstance(
            self._document.get(DEPENDENCIES_KEY), (Table, InlineTable, OutOfOrderTableProxy)
        ):
            raise MalformedDocument("No [dependencies] table found in manifest")

    @staticmethod
    def _parse(text: str) -> tomlkit.TOMLDocument:
        try:
            return tomlkit.parse(text)
        except ParseError as e:
            raise ManifestParseError(str(e)) from e

    def set_features(self, dependency: str, features: list[str]) -> None:
        """Replace the feature list of ``dependency`` and disable its defaults.

        A short ``name = "1.0"`` entry is rewritten as an inline table. An empty
        ``features`` list removes the features key instead of writing ``[]``.
        Workspace-inherited entries are left untouched.
        """
        dependencies = self._document[DEPENDENCIES_KEY]
        if dependency not in dependencies:
            raise DependencyNotFound(dependency)

        entry = dependencies[dependency]

        if isinstance(entry, str):
            dependencies[dependency] = _detailed_from_version(str(entry), features)
            return

        if not isinstance(entry, (InlineTable, Table)):
            raise MalformedDependencyEntry(dependency)

        if entry.get("workspace") is True:
            log.debug("editor.inherited_dependency_skipped", dependency=dependency)
            return

        if "default_features" in entry and "default-features" not in entry:
            entry["default_features"] = False
        else:
            entry["default-features"] = False

        if features:
            entry["features"] = _feature_array(features)
        elif "features" in entry:
            del entry["features"]

    def restore(self) -> None:
        """Discard all edits."""
        self._document = self._parse(self._original_text)

    def serialize(self) -> str:
        return tomlkit.dumps(self._document)

    @property
    def original_text(self) -> str:
        return self._original_text


def _feature_array(features: list[str]) -> tomlkit.items.Array:
    array = tomlkit.array()
    array.extend(features)
    return array


def _detailed_from_version(version: str, features: list[str]) -> InlineTable:
    table = tomlkit.inline_table()
    table["version"] = version
    table["default-features"] = False
    if features:
        table["features"] = _feature_array(features)
    return table
