"""
Tests for the MIAME experiment metadata record.
"""

import pytest

from exprdata.core.miame import MIAME, ExperimentInfo, merge_miame

from conftest import make_miame


class TestMIAMEConstruction:

    def test_sequences_normalized_to_tuples(self, test_miame):
        assert test_miame.samples == ("S1", "S2")
        assert test_miame.hybridizations == ("Hyb1",)
        assert isinstance(test_miame.preprocessing, tuple)

    def test_bare_string_sequence_rejected(self):
        """A plain string would otherwise be split into characters."""
        with pytest.raises(TypeError, match="samples"):
            make_miame(samples="S1")

    def test_other_defaults_to_empty_dict(self):
        record = MIAME(
            name="n", lab="l", contact="c", title="t", abstract="a", url="u",
            pub_med_id="", samples=[], hybridizations=[], norm_controls=[],
            preprocessing=[],
        )
        assert record.other == {}
        assert record.notes == {}

    def test_frozen(self, test_miame):
        with pytest.raises(AttributeError):
            test_miame.name = "changed"

    def test_structural_equality(self):
        assert make_miame() == make_miame()
        assert make_miame() != make_miame(name="Other")

    def test_not_hashable(self, test_miame):
        with pytest.raises(TypeError):
            hash(test_miame)


class TestMIAMEAccessors:

    def test_info(self, test_miame):
        info = test_miame.info()
        assert isinstance(info, ExperimentInfo)
        assert info == ("Name", "Lab", "contact@example.org", "Title", "https://example.org")

    def test_notes_alias(self, test_miame):
        assert test_miame.notes == {"note": "value"}

    def test_str_block(self, test_miame):
        text = str(test_miame)
        assert text.startswith("MIAME Information:")
        assert "Lab: Lab" in text
        assert "PubMed ID: 12345" in text
        assert "note: value" in text


class TestMIAMEMerge:

    def test_naive_concatenation(self):
        """String fields concatenate with no separator by default."""
        merged = make_miame(name="Name1").merge(make_miame(name="Name2"))
        assert merged.name == "Name1Name2"
        assert merged.lab == "LabLab"

    def test_separator(self):
        merged = make_miame(name="Name1").merge(make_miame(name="Name2"), sep="; ")
        assert merged.name == "Name1; Name2"

    def test_sequences_concatenated_in_order(self):
        a = make_miame(samples=["S1", "S2"])
        b = make_miame(samples=["S3"])
        merged = a.merge(b)
        assert merged.samples == ("S1", "S2", "S3")
        assert merged.hybridizations == ("Hyb1", "Hyb1")

    def test_other_second_record_wins(self):
        a = make_miame(other={"k": "a", "only_a": "1"})
        b = make_miame(other={"k": "b"})
        assert a.merge(b).other == {"k": "b", "only_a": "1"}

    def test_inputs_unchanged(self):
        a = make_miame(name="A")
        b = make_miame(name="B")
        a.merge(b)
        assert a.name == "A"
        assert b.name == "B"

    def test_functional_form(self):
        a = make_miame(name="A")
        b = make_miame(name="B")
        assert merge_miame(a, b) == a.merge(b)

    def test_rejects_non_miame(self, test_miame):
        with pytest.raises(TypeError):
            test_miame.merge({"name": "x"})


class TestMIAMEDict:

    def test_to_dict_plain_types(self, test_miame):
        data = test_miame.to_dict()
        assert data["samples"] == ["S1", "S2"]
        assert data["other"] == {"note": "value"}
        assert data["pub_med_id"] == "12345"

    def test_from_dict_restores(self, test_miame):
        assert MIAME.from_dict(test_miame.to_dict()) == test_miame

    def test_from_dict_accepts_slot_aliases(self):
        record = MIAME.from_dict({
            "name": "X",
            "pubMedIds": "999",
            "normControls": ["ACTB"],
            "other": [],
        })
        assert record.pub_med_id == "999"
        assert record.norm_controls == ("ACTB",)
        assert record.other == {}
        assert record.lab == ""
        assert record.samples == ()
