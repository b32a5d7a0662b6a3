from __future__ import annotations

from dataclasses import dataclass


DEFAULT_START_URL = "https://caesar.ent.northwestern.edu/psp/csnu_6/EMPLOYEE/SA/c/NWCT.NW_CT_PUBLIC_VIEW.GBL"


@dataclass(frozen=True)
class CtecSelectors:
    """
    CAESAR (PeopleSoft) renders the CTEC search inside nested frames; ids and link texts may change.
    Keep all UI selectors/text hooks here for easy maintenance.
    """

    # Search CTECs form
    career_select: str = "#NW_CT_PB_SRCH_ACAD_CAREER"
    subject_select: str = "#NW_CT_PB_SRCH_SUBJECT"
    search_button: str = 'input[value="Search"]'
    career_label: str = "Undergraduate"

    # Result lists
    course_row_link: str = 'a:has-text("Get List of CTECs")'
    evaluation_row_link: str = 'a:has-text("View Evaluation")'

    # Report page text hooks (any one present => report loaded)
    report_markers: tuple[str, ...] = (
        "Student Report for",
        "Responses Received",
        "Course and Teacher Evaluations",
        "ESSAY QUESTIONS",
    )
    # NetID / Duo / Shibboleth interstitial (matched case-insensitively)
    auth_text_markers: tuple[str, ...] = ("netid", "sign in", "duo", "two-factor")
    auth_url_markers: tuple[str, ...] = ("shibboleth", "login", "sso")
