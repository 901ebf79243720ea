import pytest

from formsheets.services.schema_registry import (
    SHEET_MAPPINGS,
    ColumnMapping,
    SchemaRegistry,
    fallback_sheet_name,
)


def test_known_form_types_are_mapped():
    registry = SchemaRegistry()

    contact = registry.lookup("contact_submissions")

    assert contact.sheet_name == "Contact Submissions"
    assert len(contact.columns) == 10
    assert registry.lookup("atm_enquiry_submissions").sheet_name == "ATM Enquiry"
    assert "Languages Known" in registry.lookup("agent_submissions").columns


def test_unknown_form_type_is_unmapped():
    assert SchemaRegistry().lookup("newsletter_signups") is None


@pytest.mark.parametrize("form_type", sorted(SHEET_MAPPINGS))
def test_every_mapping_starts_with_timestamp_and_has_unique_columns(form_type):
    columns = SHEET_MAPPINGS[form_type].columns
    assert columns[0] == "Timestamp"
    assert len(set(columns)) == len(columns)


def test_custom_mappings_replace_defaults():
    registry = SchemaRegistry({"beta": ColumnMapping("Beta", ("Timestamp", "Note"))})

    assert tuple(registry.form_types()) == ("beta",)
    assert registry.lookup("contact_submissions") is None


@pytest.mark.parametrize(
    "form_type,sheet_name",
    [
        ("newsletter_signups", "Newsletter Signups"),
        ("job_leads", "Job Leads"),
        ("__", "Unmapped Submissions"),
        ("partnerEnquiry", "PartnerEnquiry"),
    ],
)
def test_fallback_sheet_name(form_type, sheet_name):
    assert fallback_sheet_name(form_type) == sheet_name
