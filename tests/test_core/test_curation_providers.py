from __future__ import annotations

from pathlib import Path

import pytest

from depatlas.core.curation import (
    CompositePackageCurationProvider,
    FilePackageCurationProvider,
    SimplePackageCurationProvider,
)
from depatlas.exceptions import ConfigError
from depatlas.models.curation import PackageCuration, PackageCurationData
from depatlas.models.identifier import Identifier

LODASH = Identifier("NPM", "", "lodash", "4.17.21")


def _curation(coordinates: str, **data: str) -> PackageCuration:
    return PackageCuration(Identifier.from_coordinates(coordinates), PackageCurationData(**data))


@pytest.mark.unit
class TestSimplePackageCurationProvider:
    """Tests for SimplePackageCurationProvider."""

    def test_returns_applicable_in_order(self) -> None:
        """Test only matching curations are returned, in list order."""
        all_versions = _curation("NPM::lodash", description="any")
        major = _curation("npm::lodash:4.*", description="four")
        other = _curation("NPM::lodash:3.*", description="three")
        provider = SimplePackageCurationProvider([all_versions, other, major])

        assert provider.get_curations_for(LODASH) == [all_versions, major]

    def test_empty(self) -> None:
        """Test a provider without curations returns nothing."""
        assert SimplePackageCurationProvider().get_curations_for(LODASH) == []


@pytest.mark.unit
class TestFilePackageCurationProvider:
    """Tests for FilePackageCurationProvider."""

    def test_reads_file(self, tmp_path: Path) -> None:
        """Test curations are loaded from the file."""
        path = tmp_path / "curations.toml"
        path.write_text(
            '[[curations]]\nid = "NPM::lodash:4.*"\nhomepage_url = "https://lodash.com"\n',
            encoding="utf-8",
        )

        provider = FilePackageCurationProvider(path)

        (curation,) = provider.get_curations_for(LODASH)
        assert curation.data.homepage_url == "https://lodash.com"
        assert provider.path == path

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is a configuration error."""
        with pytest.raises(ConfigError):
            FilePackageCurationProvider(tmp_path / "missing.toml")


@pytest.mark.unit
class TestCompositePackageCurationProvider:
    """Tests for CompositePackageCurationProvider."""

    def test_concatenates_in_provider_order(self) -> None:
        """Test later providers' curations come last and thus win."""
        first = _curation("NPM::lodash", description="first")
        second = _curation("NPM::lodash", description="second")
        composite = CompositePackageCurationProvider(
            [SimplePackageCurationProvider([first]), SimplePackageCurationProvider([second])]
        )

        curations = composite.get_curations_for(LODASH)

        assert curations == [first, second]
