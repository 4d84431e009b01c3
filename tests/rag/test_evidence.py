"""
Tests for rag/evidence.py: ordering, dedupe and the sources payload.
"""

import json

import pytest

from sourcechat.rag import (
    EvidenceItem,
    Source,
    decode_sources,
    dedupe_evidence,
    encode_sources,
    order_evidence,
)


def _item(chunk_id, document_id, position, score=0.5):
    return EvidenceItem(
        id=chunk_id,
        document_id=document_id,
        text=f"text {chunk_id}",
        score=score,
        position=position,
    )


class TestOrdering:
    def test_grouped_by_document_then_position(self) -> None:
        items = [_item("1", "docB", 2), _item("2", "docA", 5), _item("3", "docB", 1)]
        ordered = order_evidence(items)
        assert [(i.document_id, i.position) for i in ordered] == [
            ("docA", 5),
            ("docB", 1),
            ("docB", 2),
        ]

    def test_ties_keep_input_order(self) -> None:
        items = [_item("x", "doc", 1), _item("y", "doc", 1)]
        assert [i.id for i in order_evidence(items)] == ["x", "y"]

    def test_score_does_not_affect_order(self) -> None:
        items = [_item("1", "doc", 2, score=0.99), _item("2", "doc", 1, score=0.01)]
        assert [i.id for i in order_evidence(items)] == ["2", "1"]


class TestDedupe:
    def test_first_occurrence_wins(self) -> None:
        first = _item("1", "doc", 0, score=0.9)
        later = EvidenceItem(id="1", document_id="doc", text="other", score=0.1)
        assert dedupe_evidence([first, _item("2", "doc", 1), later]) == [
            first,
            _item("2", "doc", 1),
        ]


class TestPayload:
    def test_encode_shape(self) -> None:
        payload = json.loads(encode_sources([_item("1", "docA", 3)]))
        assert payload == {
            "sources": [
                {"id": "1", "document_id": "docA", "text": "text 1", "score": 0.5, "position": 3}
            ]
        }

    def test_decode_inverts_encode(self) -> None:
        items = [_item("1", "docA", 3), _item("2", "docB", 0)]
        assert decode_sources(encode_sources(items)) == items

    @pytest.mark.parametrize(
        "payload",
        ["not json", "[]", '{"other": []}', '{"sources": [{"text": "no ids"}]}'],
    )
    def test_decode_rejects_malformed(self, payload) -> None:
        with pytest.raises(ValueError):
            decode_sources(payload)


class TestSource:
    def test_from_evidence(self) -> None:
        source = Source.from_evidence(_item("1", "docA", 3), name="paper.pdf")
        assert source.name == "paper.pdf"
        assert source.resolved
        assert source.position == 3

    def test_unresolved_when_name_empty(self) -> None:
        assert not Source.from_evidence(_item("1", "docA", 3)).resolved
