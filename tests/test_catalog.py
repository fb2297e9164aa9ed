"""
Tests for the SAP process catalog.
"""

import pytest

from process_mining.catalog import (
    PROCESS_CONFIGS,
    TABLE_TYPES,
    adapt_config_for_s4,
    get_activity_from_tcode,
    get_all_process_ids,
    get_process_config,
    get_tables_for_process,
    is_s4hana,
)
from process_mining.errors import InvalidInputError, NotFoundError


class TestLookup:
    """Tests for process lookup."""

    def test_all_process_ids(self):
        """Seven processes in declaration order."""
        assert get_all_process_ids() == ["O2C", "P2P", "R2R", "A2R", "H2R", "P2M", "M2S"]

    def test_lookup_is_case_insensitive(self):
        """Ids are trimmed and upper-cased."""
        assert get_process_config(" o2c ")["name"] == "Order to Cash"

    def test_unknown_process(self):
        """Unknown ids raise NotFoundError, which is also a KeyError."""
        with pytest.raises(NotFoundError):
            get_process_config("XYZ")
        with pytest.raises(KeyError):
            get_process_config("")

    @pytest.mark.parametrize("process_id", list(PROCESS_CONFIGS))
    def test_config_shape(self, process_id):
        """Every process has tables, a reference path, KPIs and valid table types."""
        config = get_process_config(process_id)
        assert config["id"] == process_id
        assert config["tables"]
        assert len(config["referenceActivities"]) >= 2
        assert config["kpis"]
        for definition in config["tables"].values():
            assert definition["type"] in TABLE_TYPES


class TestTcodes:
    """Tests for transaction code resolution."""

    def test_tcode_normalized(self):
        """Whitespace and case are ignored."""
        assert get_activity_from_tcode(" va01 ") == "Create Sales Order"

    def test_tcode_scoped_to_process(self):
        """A process id restricts the lookup."""
        assert get_activity_from_tcode("MIGO", "P2P") == "Goods Receipt"
        assert get_activity_from_tcode("MIGO", "O2C") is None

    def test_unknown_tcode(self):
        """Unknown or empty codes give None."""
        assert get_activity_from_tcode("ZZZZ") is None
        assert get_activity_from_tcode("") is None


class TestS4Detection:
    """Tests for is_s4hana."""

    @pytest.mark.parametrize("info", [
        {"component": "S4CORE"},
        {"release": "1909"},
        {"sapProduct": "SAP S/4HANA 2021"},
        {"components": [{"component": "S4CORE"}]},
        {"components": ["SAP_BASIS", "S4CORE"]},
        {"tables": {"ACDOCA": True}},
        {"COMPONENT": "S4CORE"},
        {"RELEASE": "2020"},
        {"installedComponents": [{"COMPONENT": "SAP_S4CORE"}]},
        {"installedComponents": [{"component": "s4core"}]},
        {"tableExists": {"ACDOCA": True, "VBUK": False}},
    ])
    def test_s4_systems(self, info):
        """Any single S/4 marker is enough."""
        assert is_s4hana(info)

    @pytest.mark.parametrize("info", [
        None,
        {},
        {"component": "SAP_APPL", "release": "618"},
        {"tables": {"ACDOCA": False}},
        {"COMPONENT": "SAP_APPL", "RELEASE": "618"},
        {"installedComponents": [{"COMPONENT": "SAP_APPL"}]},
        {"tableExists": {"ACDOCA": True, "VBUK": True}},
    ])
    def test_ecc_systems(self, info):
        """ECC descriptors and empty input are not S/4."""
        assert not is_s4hana(info)


class TestS4Adaptation:
    """Tests for adapt_config_for_s4."""

    def test_o2c_drops_status_tables(self):
        """VBUK/VBUP vanish and their fields move to VBAK/VBAP."""
        adapted = adapt_config_for_s4(get_process_config("O2C"))
        assert "VBUK" not in adapted["tables"]
        assert "VBUP" not in adapted["tables"]
        assert "GBSTK" in adapted["tables"]["VBAK"]["fields"]
        assert "LFSTA" in adapted["tables"]["VBAP"]["fields"]
        assert adapted["_s4adapted"] is True

    def test_input_untouched(self):
        """The catalog entry is not modified."""
        original = get_process_config("O2C")
        adapt_config_for_s4(original)
        assert "VBUK" in original["tables"]
        assert "GBSTK" not in original["tables"]["VBAK"]["fields"]
        assert "_s4adapted" not in original

    def test_no_duplicate_fields(self):
        """Adapting twice does not duplicate migrated fields."""
        twice = adapt_config_for_s4(adapt_config_for_s4(get_process_config("O2C")))
        fields = twice["tables"]["VBAK"]["fields"]
        assert fields.count("GBSTK") == 1

    def test_r2r_uses_universal_journal(self):
        """Classic GL tables give way to ACDOCA."""
        tables = get_tables_for_process("R2R", s4=True)
        assert "ACDOCA" in tables
        assert "FAGLFLEXA" not in tables

    def test_replacement_keeps_source_when_target_exists(self):
        """ANLP stays when ACDOCA is already part of the process."""
        adapted = adapt_config_for_s4(get_process_config("A2R"))
        assert "ANLP" in adapted["tables"]
        assert adapted["tables"]["ANLP"] == get_process_config("A2R")["tables"]["ANLP"]
        assert "ANEP" not in adapted["tables"]
        assert "ACDOCA" in adapted["tables"]

    def test_replacement_renames_missing_target(self):
        """A replaced table takes the new name when the target is absent."""
        config = {
            "id": "X",
            "tables": {"GLT0": {"description": "GL totals", "fields": ["RBUKRS"]}},
            "s4hana": {"tableReplacements": {"GLT0": "ACDOCA"}},
        }
        tables = adapt_config_for_s4(config)["tables"]
        assert list(tables) == ["ACDOCA"]
        assert tables["ACDOCA"]["fields"] == ["RBUKRS"]
        assert tables["ACDOCA"]["description"] == "GL totals (S/4: replaces GLT0)"

    def test_invalid_config(self):
        """Configs without tables are rejected."""
        with pytest.raises(InvalidInputError):
            adapt_config_for_s4({"id": "X"})
