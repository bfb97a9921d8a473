"""
Tag codec tests: decode/encode of classification tags and the status filters
"""
import pytest

from app.services.tag_codec import (
    ClassificationMetadata,
    TagCodec,
    normalize_filter,
    normalize_tags,
)

codec = TagCodec()


class TestNormalizeTags:
    def test_comma_string(self):
        assert normalize_tags(" summer, cotton ,,code_6109, summer") == ["summer", "cotton", "code_6109"]

    def test_list_and_none(self):
        assert normalize_tags(["a", " b ", "", "a"]) == ["a", "b"]
        assert normalize_tags(None) == []


class TestDecode:
    def test_reads_all_three_fields(self):
        metadata = codec.decode(["summer", "code_6109.10", "confidence_87", "status_approved"])
        assert metadata == ClassificationMetadata(code="6109.10", confidence=87, status="approved")

    def test_no_metadata_tags(self):
        metadata = codec.decode(["summer", "cotton"])
        assert metadata == ClassificationMetadata()
        assert metadata.effective_status == "pending"

    def test_last_valid_tag_wins(self):
        metadata = codec.decode(["code_1111", "status_pending", "code_2222", "status_modified"])
        assert metadata.code == "2222"
        assert metadata.status == "modified"

    @pytest.mark.parametrize("bad", ["confidence_abc", "confidence_101", "confidence_-1", "confidence_"])
    def test_invalid_confidence_is_ignored(self, bad):
        assert codec.decode(["confidence_40", bad]).confidence == 40
        assert codec.decode([bad]).confidence is None

    def test_comma_string_input(self):
        assert codec.decode("a, code_4202, b").code == "4202"

    def test_later_empty_tag_clears_field(self):
        metadata = codec.decode(["code_1234", "status_approved", "code_", "status_"])
        assert metadata.code is None
        assert metadata.status is None

    def test_list_entry_with_comma_is_split(self):
        assert normalize_tags(["summer,code_4202"]) == ["summer", "code_4202"]
        assert codec.decode(["summer,code_4202"]).code == "4202"

    def test_namespace(self):
        hs = TagCodec("hs_")
        metadata = hs.decode(["hs_code_6109", "hs_confidence_90", "hs_status_approved", "code_9999"])
        assert metadata == ClassificationMetadata(code="6109", confidence=90, status="approved")
        assert hs.strip(["hs_code_6109", "code_9999"]) == ["code_9999"]


class TestEncode:
    def test_strips_then_appends_in_order(self):
        tags = ["summer", "code_1111", "cotton", "status_pending"]
        metadata = ClassificationMetadata(code="6109", confidence=80, status="approved")
        assert codec.encode(tags, metadata) == ["summer", "cotton", "code_6109", "confidence_80", "status_approved"]

    def test_unset_fields_are_not_written(self):
        encoded = codec.encode(["x", "confidence_50"], ClassificationMetadata(code="4202"))
        assert encoded == ["x", "code_4202"]

    def test_decode_of_encode_round_trips(self):
        start = ["a", "code_1", "confidence_5", "status_modified", "b"]
        for metadata in (
            ClassificationMetadata(code="6109.10", confidence=0, status="pending"),
            ClassificationMetadata(code="4202"),
            ClassificationMetadata(status="approved"),
            ClassificationMetadata(),
        ):
            assert codec.decode(codec.encode(start, metadata)) == metadata

    def test_re_encode_leaves_no_stale_tags(self):
        start = ["a", "status_approved"]
        first = ClassificationMetadata(code="1111", confidence=10, status="modified")
        second = ClassificationMetadata(code="2222")
        assert codec.encode(codec.encode(start, first), second) == codec.encode(start, second)

    def test_confidence_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            ClassificationMetadata(confidence=150)


class TestFilters:
    @pytest.mark.parametrize("tags,expected", [
        ([], True),
        (["status_pending"], True),
        (["status_approved"], False),
        (["status_modified"], False),
    ])
    def test_pending(self, tags, expected):
        assert codec.matches(codec.decode(tags), "pending") is expected

    @pytest.mark.parametrize("name", ["approved", "modified"])
    def test_exact_status(self, name):
        assert codec.matches(codec.decode([f"status_{name}"]), name)
        assert not codec.matches(codec.decode([]), name)
        assert not codec.matches(codec.decode(["status_pending"]), name)

    def test_classified_means_approved_or_modified(self):
        assert codec.matches(codec.decode(["status_approved"]), "classified")
        assert codec.matches(codec.decode(["status_modified"]), "classified")
        assert not codec.matches(codec.decode(["status_pending"]), "classified")

    def test_no_filter_matches_everything(self):
        assert codec.matches(codec.decode(["status_approved"]), None)
        assert codec.matches(codec.decode([]), "")

    def test_filter_aliases(self):
        assert normalize_filter("hs_approved") == "approved"
        assert normalize_filter("Modified") == "modified"
        assert normalize_filter("bogus") is None


class TestCommaSafety:
    @pytest.mark.parametrize("field", ["code", "status"])
    def test_comma_in_field_is_rejected(self, field):
        with pytest.raises(ValueError):
            ClassificationMetadata(**{field: "6109.10,6109.90"})

    def test_round_trip_through_comma_joined_string(self):
        metadata = ClassificationMetadata(code="6109.10", confidence=80, status="approved")
        joined = ", ".join(codec.encode(["summer", "cotton"], metadata))
        assert codec.decode(joined) == metadata
        assert codec.strip(joined) == ["summer", "cotton"]
