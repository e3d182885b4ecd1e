"""Tests for the CSV sink."""

import pytest

from profilecrawl.persistence import CsvSink, SinkFailure, slugify_keyword


@pytest.fixture
def sink(tmp_path):
    return CsvSink(tmp_path / "data")


def test_header_written_once_then_rows_appended(sink):
    sink.append([{"name": "a", "followers": 1}], "out.csv")
    sink.append({"name": "b", "followers": 2}, "out.csv")

    text = sink.path_for("out.csv").read_text(encoding="utf-8")
    assert text.splitlines() == ["name,followers", "a,1", "b,2"]


def test_read_all_preserves_order_and_trims(sink):
    path = sink.path_for("in.csv")
    path.parent.mkdir(parents=True)
    path.write_text("name,url\n a , https://x/in/a \n\n b ,https://x/in/b\n", encoding="utf-8")

    assert sink.read_all("in.csv") == [
        {"name": "a", "url": "https://x/in/a"},
        {"name": "b", "url": "https://x/in/b"},
    ]


def test_values_with_commas_and_quotes_survive(sink):
    sink.append([{"name": "x", "companies": 'Acme, Inc. "West"'}], "q.csv")

    assert sink.read_all("q.csv") == [{"name": "x", "companies": 'Acme, Inc. "West"'}]


def test_header_written_into_empty_existing_file(sink):
    path = sink.path_for("empty.csv")
    path.parent.mkdir(parents=True)
    path.touch()

    sink.append([{"k": "v"}], "empty.csv")

    assert path.read_text(encoding="utf-8").splitlines() == ["k", "v"]


def test_empty_records_are_rejected(sink):
    with pytest.raises(SinkFailure, match="No data"):
        sink.append([], "out.csv")
    assert not sink.exists("out.csv")


def test_unwritable_destination_raises_sink_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    sink = CsvSink(blocker)

    with pytest.raises(SinkFailure) as exc_info:
        sink.append([{"a": 1}], "out.csv")
    assert isinstance(exc_info.value.cause, OSError)


def test_reading_missing_file_raises_sink_failure(sink):
    with pytest.raises(SinkFailure):
        sink.read_all("missing.csv")


def test_absolute_destination_is_used_as_given(sink, tmp_path):
    target = tmp_path / "elsewhere" / "abs.csv"

    sink.append([{"a": 1}], target)

    assert target.is_file()
    assert sink.exists(target)


@pytest.mark.parametrize(
    "keyword, slug",
    [
        ("bill gates", "bill-gates"),
        ("  john  von neumann ", "john-von-neumann"),
        ("single", "single"),
    ],
)
def test_slugify_keyword(keyword, slug):
    assert slugify_keyword(keyword) == slug
