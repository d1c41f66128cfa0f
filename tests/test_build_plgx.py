"""Tests for the build orchestration and command line."""

import uuid
from datetime import datetime, timezone

import pytest

from plgxbuild.build_plgx import PlgxBuilder, main, parse_framework_version, source_date
from plgxbuild.config import PlgxProjectConfig
from plgxbuild.constants import ArchiveTag
from plgxbuild.serialization import Version
from plgxbuild.utils import get_counts

from conftest import FIXED_GUID


class TestFrameworkVersion:
    @pytest.mark.parametrize("moniker", ["4.7.2", "v4.7.2", ".NETFramework,Version=v4.7.2"])
    def test_accepted_forms(self, moniker):
        assert parse_framework_version(moniker) == Version(4, 7, 2)

    def test_empty(self):
        assert parse_framework_version(None) is None
        assert parse_framework_version("") is None

    def test_unrecognized_warns(self):
        assert parse_framework_version("netstandard2.0") is None
        assert get_counts() == (0, 1)


def test_source_date_epoch(monkeypatch):
    monkeypatch.setenv("SOURCE_DATE_EPOCH", "1700000000")
    assert source_date() == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


class TestPlgxBuilder:
    def test_descriptor_from_config(self, sample_project):
        builder = PlgxBuilder(PlgxProjectConfig(sample_project), file_guid=FIXED_GUID)
        d = builder.create_descriptor()
        assert d.base_name == "SamplePlugin"
        assert d.file_guid == FIXED_GUID
        assert d.target_keepass_version == Version(2, 40)
        assert d.target_framework_version == Version(4, 7, 2)
        assert d.post_process_command.startswith("cmd /c xcopy")
        assert d.created.microsecond == 0

    def test_build(self, sample_project, archive_parser):
        builder = PlgxBuilder(PlgxProjectConfig(sample_project))
        output = builder.build()

        assert output == sample_project.parent / "plgx" / "SamplePlugin.plgx"
        archive = archive_parser(output.read_bytes())
        assert archive.files[-1].path == "SamplePlugin.csproj"
        assert archive.files[-1].content.startswith(b"<Project>")
        assert not builder.temp_dir.exists()

    def test_keep_temp(self, sample_project):
        builder = PlgxBuilder(PlgxProjectConfig(sample_project), keep_temp=True)
        builder.build()
        assert (builder.temp_dir / "SamplePlugin.csproj").exists()

    def test_output_dir_override(self, sample_project):
        output = PlgxBuilder(PlgxProjectConfig(sample_project), output_dir="bin").build()
        assert output == sample_project.parent / "bin" / "SamplePlugin.plgx"


class TestMain:
    def test_reproducible_builds_are_identical(self, sample_project, monkeypatch):
        monkeypatch.setenv("SOURCE_DATE_EPOCH", "1700000000")
        output = sample_project.parent / "plgx" / "SamplePlugin.plgx"

        main(["--config", str(sample_project), "--reproducible"])
        first = output.read_bytes()
        main(["--config", str(sample_project), "--reproducible"])
        assert output.read_bytes() == first

    def test_fixed_guid(self, sample_project, archive_parser):
        main(["--config", str(sample_project), "--guid", str(FIXED_GUID)])
        data = (sample_project.parent / "plgx" / "SamplePlugin.plgx").read_bytes()
        assert archive_parser(data).header[ArchiveTag.FILE_UUID] == FIXED_GUID.bytes_le

    def test_log_file(self, sample_project, tmp_path):
        log_path = tmp_path / "logs" / "build.log"
        main(["--config", str(sample_project), "--log", str(log_path)])
        text = log_path.read_text(encoding='utf-8')
        assert "PLGX archive manifest for 'SamplePlugin'" in text
        assert "[DEBUG]   SamplePluginExt.cs" in text

    def test_missing_config_exits(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "missing.ini")])
        assert excinfo.value.code == 1

    def test_bad_guid_exits(self, sample_project):
        with pytest.raises(SystemExit):
            main(["--config", str(sample_project), "--guid", "not-a-guid"])

    def test_missing_item_fails_build(self, sample_project):
        (sample_project.parent / "readme.txt").unlink()
        with pytest.raises(SystemExit):
            main(["--config", str(sample_project)])

    def test_random_guid_by_default(self, sample_project, archive_parser):
        output = sample_project.parent / "plgx" / "SamplePlugin.plgx"
        main(["--config", str(sample_project)])
        first = archive_parser(output.read_bytes()).header[ArchiveTag.FILE_UUID]
        main(["--config", str(sample_project)])
        second = archive_parser(output.read_bytes()).header[ArchiveTag.FILE_UUID]
        assert uuid.UUID(bytes_le=first) != uuid.UUID(bytes_le=second)
