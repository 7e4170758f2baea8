"""Catalog modules loaded by name in integration and CLI tests."""

from recipe_parity.bootstrap import Harness
from recipe_parity.domain.model import Scenario
from tests.fixtures.recipes import CLASS_FOO, CLASS_FOO_WITH_IMPORT, AddImport


def register_add_import(harness: Harness) -> None:
    """Register the two-scenario AddImport contract."""
    recipe = AddImport("java.util.List")
    harness.register_contract(
        "AddImport",
        [
            Scenario("adds-missing-import", CLASS_FOO, recipe, CLASS_FOO_WITH_IMPORT),
            Scenario(
                "keeps-existing-import",
                CLASS_FOO_WITH_IMPORT,
                recipe,
                CLASS_FOO_WITH_IMPORT,
            ),
        ],
        required_features={"imports"},
    )
