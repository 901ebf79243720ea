"""
Column mappings for each known form type.

Column order is a contract with the receiving spreadsheet: column 0 is
always ``Timestamp`` and every other position maps to one field. New
fields go at the END of a mapping, otherwise rows already written to the
sheet no longer line up with the header.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

FALLBACK_COLUMNS: Tuple[str, ...] = ("Timestamp", "Submission Data")


@dataclass(frozen=True)
class ColumnMapping:
    """Target tab and ordered header for one form type."""
    sheet_name: str
    columns: Tuple[str, ...]


SHEET_MAPPINGS: Dict[str, ColumnMapping] = {
    "franchise_applications": ColumnMapping(
        sheet_name="Franchise Applications",
        columns=(
            "Timestamp",
            "First Name",
            "Last Name",
            "Email",
            "Phone",
            "WhatsApp Phone",
            "City",
            "State",
            "PIN Code",
            "Business Type",
            "Investment Budget",
            "Space Availability",
            "Current Occupation",
            "Experience (Years)",
            "Monthly Income",
            "Net Worth",
            "How Did You Hear About Us",
            "Additional Comments",
            "Form Language",
            "UTM Source",
            "UTM Medium",
            "UTM Campaign",
        ),
    ),
    "agent_submissions": ColumnMapping(
        sheet_name="Agent Submissions",
        columns=(
            "Timestamp",
            "Full Name",
            "Email",
            "Phone",
            "WhatsApp Phone",
            "State",
            "District",
            "City",
            "PIN Code",
            "Joining As",
            "Gender",
            "Date of Birth",
            "Languages Known",
            "Education",
            "Current Occupation",
            "Experience",
            "Why Join Us",
            "PAN Number",
            "Aadhaar Number",
            "Bank Account Number",
            "IFSC Code",
            "PAN Document URL",
            "Aadhaar Front URL",
            "Aadhaar Back URL",
            "Photo URL",
            "Form Language",
            "Referral Code",
        ),
    ),
    "influencer_submissions": ColumnMapping(
        sheet_name="Influencer Submissions",
        columns=(
            "Timestamp",
            "Full Name",
            "Email",
            "Phone",
            "WhatsApp Phone",
            "State",
            "District",
            "City",
            "PIN Code",
            "YouTube Channel",
            "YouTube Subscribers",
            "Instagram Handle",
            "Instagram Followers",
            "Facebook Page",
            "Facebook Followers",
            "LinkedIn Profile",
            "LinkedIn Connections",
            "Other Platform",
            "Total Reach",
            "Content Type",
            "Languages",
            "PAN Document URL",
            "Aadhaar Front URL",
            "Aadhaar Back URL",
            "Photo URL",
            "Form Language",
        ),
    ),
    "location_submissions": ColumnMapping(
        sheet_name="Location Submissions",
        columns=(
            "Timestamp",
            "Full Name",
            "Email",
            "Phone",
            "WhatsApp Phone",
            "Location Name",
            "Shop/Business Name",
            "Full Address",
            "Landmark",
            "City",
            "State",
            "PIN Code",
            "Location Type",
            "Footfall per Day",
            "Space Available (sq ft)",
            "Power Backup Available",
            "Internet Available",
            "Security Available",
            "Agent Code",
            "Assisted by Agent",
            "Room Photo URL",
            "Building Photo URL",
            "Street Photo URL",
            "Google Map Link",
            "Additional Notes",
            "Form Language",
        ),
    ),
    "contact_submissions": ColumnMapping(
        sheet_name="Contact Submissions",
        columns=(
            "Timestamp",
            "Name",
            "Email",
            "Phone",
            "Subject",
            "Message",
            "Form Language",
            "Page Source",
            "IP Address",
            "User Agent",
        ),
    ),
    "atm_enquiry_submissions": ColumnMapping(
        sheet_name="ATM Enquiry",
        columns=(
            "Timestamp",
            "Full Name",
            "Email",
            "Phone",
            "WhatsApp Number",
            "State",
            "District",
            "City",
            "PIN Code",
            "Enquiry Purpose",
            "Business Type",
            "Occupation",
            "Monthly Income",
            "Investment Capacity",
            "Has Own Space",
            "Space Size (sq ft)",
            "Expected Monthly Revenue",
            "Timeline to Start",
            "How Did You Hear About Us",
            "Additional Questions",
            "Form Language",
            "Lead Score",
            "Lead Quality",
        ),
    ),
    "job_applications": ColumnMapping(
        sheet_name="Job Applications",
        columns=(
            "Timestamp",
            "Job Title",
            "Job ID",
            "Candidate Name",
            "Email",
            "Phone",
            "Alternate Phone",
            "Current Location",
            "Preferred Location",
            "Total Experience",
            "Relevant Experience",
            "Current Company",
            "Current Designation",
            "Current CTC",
            "Expected CTC",
            "Notice Period",
            "Reason for Change",
            "Skills",
            "Education",
            "LinkedIn Profile",
            "Portfolio URL",
            "CV File URL",
            "Cover Letter",
            "References",
            "Available for Interview",
            "Form Language",
        ),
    ),
}


class SchemaRegistry:
    """Read-only lookup from form type to column mapping."""

    def __init__(self, mappings: Optional[Dict[str, ColumnMapping]] = None):
        self._mappings = dict(SHEET_MAPPINGS if mappings is None else mappings)

    def lookup(self, form_type: str) -> Optional[ColumnMapping]:
        """Return the mapping for ``form_type`` or None when it is unmapped."""
        return self._mappings.get(form_type)

    def form_types(self) -> Iterable[str]:
        return tuple(self._mappings)


def fallback_sheet_name(form_type: str) -> str:
    """Readable tab name for an unmapped form type (``job_leads`` -> ``Job Leads``)."""
    words = form_type.replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or "Unmapped Submissions"
