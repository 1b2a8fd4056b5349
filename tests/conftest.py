import pytest

from paperstruct.models import TableFragment


SAMPLE_PAPER = (
    "Abstract\n"
    "This trial evaluated a new antihypertensive therapy.\n"
    "1. Introduction\n"
    "Hypertension is common in older adults.\n"
    "2. Methods\n"
    "We enrolled adults from three clinics.\n"
    "2.1 Statistical Analysis\n"
    "Data were analyzed with linear regression.\n"
    "3. Results\n"
    "Table 1: Baseline characteristics\n"
    "Age and sex were balanced between arms.\n"
    "Table 1 (continued)\n"
    "Blood pressure was similar at baseline.\n"
    "4. Discussion\n"
    "The therapy lowered blood pressure.\n"
    "References\n"
    "1. Smith J. A study of blood pressure. 2020.\n"
)

CASE_REPORT = (
    "Abstract\n"
    "We describe an unusual presentation.\n"
    "Case Presentation\n"
    "A 54-year-old man presented with chest pain.\n"
    "Patient History\n"
    "No prior cardiac events.\n"
    "Discussion\n"
    "This case is rare.\n"
)


@pytest.fixture
def sample_paper():
    return SAMPLE_PAPER


@pytest.fixture
def case_report():
    return CASE_REPORT


@pytest.fixture
def split_table():
    """Table 1 over pages 3 and 4, plus a single-page Table 2."""
    return [
        TableFragment(
            table_number="1",
            page_number=3,
            caption="Table 1: Baseline characteristics",
            rows=[["Age", "54"], ["Sex", "M"], ["BMI", "27"], ["SBP", "150"], ["DBP", "95"]],
        ),
        TableFragment(
            table_number="1",
            page_number=4,
            caption="Table 1 (continued)",
            rows=[["HR", "72"], ["LDL", "130"], ["HbA1c", "6.1"]],
        ),
        TableFragment(
            table_number="2",
            page_number=5,
            caption="Table 2: Outcomes",
            rows=[["Death", "2"]],
        ),
    ]
