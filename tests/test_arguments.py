import pytest

from dufs_mcp.mcp.arguments import (
    DownloadArgs,
    ListArgs,
    MoveArgs,
    NoArgs,
    UploadArgs,
    UploadBatchArgs,
    parse_arguments,
)
from dufs_mcp.mcp.errors import ToolArgumentError
from dufs_mcp.mcp.protocol import APPLICATION_ERROR


class TestUploadArgs:
    def test_async_alias_and_default(self):
        assert parse_arguments(UploadArgs, {"local_path": "/tmp/a.txt"}).run_async is False
        args = parse_arguments(UploadArgs, {"local_path": "/tmp/a.txt", "async": True})
        assert args.run_async is True
        assert args.remote_path is None

    def test_missing_local_path(self):
        with pytest.raises(ToolArgumentError) as excinfo:
            parse_arguments(UploadArgs, {"remote_path": "x"})
        assert excinfo.value.message == "local_path is required"
        assert excinfo.value.code == APPLICATION_ERROR

    def test_empty_local_path_counts_as_missing(self):
        with pytest.raises(ToolArgumentError, match="local_path is required"):
            parse_arguments(UploadArgs, {"local_path": ""})

    def test_wrong_type_names_field(self):
        with pytest.raises(ToolArgumentError, match="invalid async"):
            parse_arguments(UploadArgs, {"local_path": "a", "async": "yes"})


class TestUploadBatchArgs:
    def test_defaults_to_async(self):
        args = parse_arguments(UploadBatchArgs, {"files": [{"local_path": "a"}, {"local_path": "b", "remote_path": "x/b"}]})
        assert args.run_async is True
        assert [entry.local_path for entry in args.files] == ["a", "b"]
        assert args.files[1].remote_path == "x/b"

    @pytest.mark.parametrize("arguments", [{}, {"files": []}])
    def test_files_required(self, arguments):
        with pytest.raises(ToolArgumentError) as excinfo:
            parse_arguments(UploadBatchArgs, arguments)
        assert excinfo.value.message == "files is required and must contain at least one entry"

    def test_each_file_needs_local_path(self):
        with pytest.raises(ToolArgumentError) as excinfo:
            parse_arguments(UploadBatchArgs, {"files": [{"local_path": "a"}, {"remote_path": "b"}]})
        assert excinfo.value.message == "local_path is required for each file"


def test_none_arguments_treated_as_empty():
    assert isinstance(parse_arguments(NoArgs, None), NoArgs)
    assert parse_arguments(ListArgs, None).path is None


def test_unknown_keys_ignored():
    args = parse_arguments(MoveArgs, {"source": "a", "destination": "b", "overwrite": True})
    assert (args.source, args.destination) == ("a", "b")


def test_list_format_must_be_known():
    with pytest.raises(ToolArgumentError, match="invalid format"):
        parse_arguments(ListArgs, {"format": "xml"})


def test_download_requires_remote_path():
    with pytest.raises(ToolArgumentError, match="remote_path is required"):
        parse_arguments(DownloadArgs, {"local_path": "out.bin"})
