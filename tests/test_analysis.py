"""Tests for the top-downloaded analysis."""
from analysis import AnalysisService
from domain import AddOnInfoAndVersions, AddOnType
from index import AddOnIndex, MemoryDocumentStore


def _index_with_counts(counts):
    index = AddOnIndex(MemoryDocumentStore(), "add_ons")
    index.set_up()
    for uid, count in counts.items():
        info = AddOnInfoAndVersions(uid=uid, type=AddOnType.OMOD, name=uid.title())
        info.download_count_in_last_30_days = count
        index.index(info)
    return index


class TestTopDownloaded:
    """Tests for AnalysisService.get_top_downloaded."""

    def test_sorted_descending(self):
        """Test that add-ons are ordered by download count."""
        service = AnalysisService(_index_with_counts({"a": 5, "b": 50, "c": 20}))
        top = service.get_top_downloaded()
        assert [t.summary.uid for t in top] == ["b", "c", "a"]
        assert [t.download_count for t in top] == [50, 20, 5]

    def test_uncounted_excluded(self):
        """Test that add-ons without a count are left out."""
        service = AnalysisService(_index_with_counts({"a": None, "b": 3}))
        assert [t.summary.uid for t in service.get_top_downloaded()] == ["b"]

    def test_limit(self):
        """Test that the result is truncated to the limit."""
        counts = {f"addon{i}": i for i in range(15)}
        service = AnalysisService(_index_with_counts(counts))
        top = service.get_top_downloaded()
        assert len(top) == 10
        assert top[0].summary.uid == "addon14"
        assert len(service.get_top_downloaded(limit=3)) == 3

    def test_json_shape(self):
        """Test the serialized shape."""
        service = AnalysisService(_index_with_counts({"a": 7}))
        assert service.get_top_downloaded()[0].to_json() == {
            "summary": {
                "uid": "a",
                "type": "OMOD",
                "name": "A",
                "description": None,
                "hostedUrl": None,
                "latestVersion": None,
                "status": "ACTIVE",
                "tags": [],
            },
            "downloadCount": 7,
        }
