"""Tests for the classification request/response contract."""

import json

import pytest

from models import (
    BatchRequest, BatchResponse, ItemMetadata, CabinetInfo, ShelfInfo,
    ExistingAssignment, NewAssignment, OracleResponseError, LLMError,
    parse_assignment, validate_response,
)


def analysis(item_id, cabinet=None, shelf=None, **extra):
    data = {
        "id": item_id,
        "description": "A file",
        "suggested_name": "",
        "is_opaque_directory": False,
        "cabinet": cabinet or {"assignment_type": "new", "existing_id": 0,
                               "new_name": "Documents", "new_description": "Paperwork"},
        "shelf": shelf or {"assignment_type": "existing", "existing_id": 3,
                           "new_name": "", "new_description": ""},
    }
    data.update(extra)
    return data


@pytest.fixture
def request_two():
    return BatchRequest(items=[
        ItemMetadata(id="0", name="file1", item_type="file", extension="txt"),
        ItemMetadata(id="1", name="photos", item_type="directory"),
    ])


class TestParseAssignment:
    """Tests for parse_assignment()."""

    def test_existing(self):
        result = parse_assignment(
            {"assignment_type": "existing", "existing_id": 4, "new_name": "", "new_description": ""},
            "cabinet"
        )
        assert result == ExistingAssignment(id=4)

    def test_existing_numeric_string(self):
        result = parse_assignment({"assignment_type": "existing", "existing_id": "7"}, "shelf")
        assert result == ExistingAssignment(id=7)

    def test_new(self):
        result = parse_assignment(
            {"assignment_type": "new", "existing_id": 0,
             "new_name": " Recipes ", "new_description": "Cooking"},
            "cabinet"
        )
        assert result == NewAssignment(name="Recipes", description="Cooking")

    def test_existing_zero_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "existing", "existing_id": 0}, "cabinet")

    def test_existing_missing_id_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "existing"}, "cabinet")

    def test_existing_bool_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "existing", "existing_id": True}, "cabinet")

    def test_new_without_name_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "new", "new_name": "",
                              "new_description": "Something"}, "shelf")

    def test_new_without_description_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "new", "new_name": "Docs"}, "shelf")

    def test_unknown_discriminator_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_assignment({"assignment_type": "maybe", "existing_id": 1}, "cabinet")

    def test_not_an_object(self):
        with pytest.raises(OracleResponseError):
            parse_assignment("existing", "cabinet")

    def test_error_is_llm_error(self):
        with pytest.raises(LLMError):
            parse_assignment({}, "cabinet")


class TestBatchResponse:
    """Tests for BatchResponse.from_dict()."""

    def test_parses_items(self):
        response = BatchResponse.from_dict({"items": [analysis("0", suggested_name="Letter")]})
        item = response.items[0]
        assert item.id == "0"
        assert item.suggested_name == "Letter"
        assert item.cabinet == NewAssignment(name="Documents", description="Paperwork")
        assert item.shelf == ExistingAssignment(id=3)

    def test_empty_suggested_name_is_none(self):
        response = BatchResponse.from_dict({"items": [analysis("0")]})
        assert response.items[0].suggested_name is None

    def test_numeric_id_coerced(self):
        response = BatchResponse.from_dict({"items": [analysis(0)]})
        assert response.items[0].id == "0"

    def test_missing_items_rejected(self):
        with pytest.raises(OracleResponseError):
            BatchResponse.from_dict({"results": []})

    def test_missing_id_rejected(self):
        data = analysis("0")
        del data["id"]
        with pytest.raises(OracleResponseError):
            BatchResponse.from_dict({"items": [data]})

    def test_opaque_flag_bool(self):
        response = BatchResponse.from_dict({"items": [analysis("0", is_opaque_directory=True)]})
        assert response.items[0].is_opaque_directory is True

    def test_opaque_flag_missing_is_false(self):
        data = analysis("0")
        del data["is_opaque_directory"]
        assert BatchResponse.from_dict({"items": [data]}).items[0].is_opaque_directory is False

    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_opaque_flag_non_bool_rejected(self, value):
        with pytest.raises(OracleResponseError):
            BatchResponse.from_dict({"items": [analysis("0", is_opaque_directory=value)]})

    def test_to_dict_wire_format(self):
        response = BatchResponse.from_dict({"items": [analysis("0")]})
        wire = response.to_dict()["items"][0]
        assert wire["cabinet"]["assignment_type"] == "new"
        assert wire["shelf"] == {"assignment_type": "existing", "existing_id": 3,
                                 "new_name": "", "new_description": ""}


class TestValidateResponse:
    """Tests for validate_response()."""

    def test_matching(self, request_two):
        response = BatchResponse.from_dict({"items": [analysis("0"), analysis("1")]})
        validate_response(request_two, response)

    def test_count_mismatch(self, request_two):
        response = BatchResponse.from_dict({"items": [analysis("0")]})
        with pytest.raises(OracleResponseError):
            validate_response(request_two, response)

    def test_order_mismatch(self, request_two):
        response = BatchResponse.from_dict({"items": [analysis("1"), analysis("0")]})
        with pytest.raises(OracleResponseError):
            validate_response(request_two, response)


class TestPromptAndParsing:
    """Tests for the shared LLM helpers."""

    def test_prompt_lists_catalog(self, make_llm):
        request = BatchRequest(
            items=[ItemMetadata(id="0", name="file1", item_type="file",
                                extension="txt", size_bytes=12, content_preview="hello")],
            existing_cabinets=[CabinetInfo(id=1, name="Documents", description="Paperwork")],
            existing_shelves=[ShelfInfo(id=2, cabinet_id=1, name="Letters", description="Mail")],
        )
        prompt = make_llm()._build_classification_prompt(request)
        assert "- Documents (ID: 1): Paperwork" in prompt
        assert "Letters (ID: 2): Mail" in prompt
        assert "0: file1 (file).txt, 12 bytes, hello" in prompt
        assert json.dumps(request.to_dict(), ensure_ascii=False) in prompt

    def test_prompt_empty_catalog(self, make_llm, request_two):
        prompt = make_llm()._build_classification_prompt(request_two)
        assert prompt.count("None yet") == 2

    def test_parse_code_fence(self, make_llm, request_two):
        text = "```json\n" + json.dumps({"items": [analysis("0"), analysis("1")]}) + "\n```"
        response = make_llm()._parse_classification_response(text, request_two)
        assert len(response.items) == 2

    def test_parse_invalid_json(self, make_llm, request_two):
        with pytest.raises(OracleResponseError):
            make_llm()._parse_classification_response("not json", request_two)

    def test_parse_validates_order(self, make_llm, request_two):
        text = json.dumps({"items": [analysis("1"), analysis("0")]})
        with pytest.raises(OracleResponseError):
            make_llm()._parse_classification_response(text, request_two)
