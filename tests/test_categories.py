from bidpilot.ingest.categories import (
    ETENDERS_LABELS,
    categorize_classification,
    category_from_slug,
    detect_category,
    normalize_label,
    normalize_labels,
    slug,
)


def test_exact_labels_are_case_and_ampersand_insensitive():
    assert normalize_label("Construction & Engineering") == "Construction"
    assert normalize_label("construction and engineering") == "Construction"
    assert normalize_label("CONSTRUCTION &amp; ENGINEERING") == "Construction"
    assert normalize_label("ICT & Software") == "ICT"
    assert normalize_label("Office Equipment & Supplies") == "Supplies"
    assert normalize_label("Solar & Renewable") == "Solar & Renewable"


def test_non_categories_are_dropped():
    assert normalize_label("10/03/2026") == ""
    assert normalize_label("N/A") == ""
    assert normalize_label("   ") == ""
    assert normalize_label(None) == ""


def test_unknown_labels_pass_through_truncated():
    assert normalize_label("Dredging Works") == "Dredging Works"
    assert len(normalize_label("y" * 80)) == 50


def test_etenders_table_knows_its_own_labels():
    assert normalize_label("Oil & Gas", ETENDERS_LABELS) == "Oil & Gas"
    assert normalize_label("Education", ETENDERS_LABELS) == "Education"
    # still resolves the shared labels
    assert normalize_label("Consultancy", ETENDERS_LABELS) == "Consultancy"


def test_normalize_labels_is_deterministic():
    labels = ["Healthcare", "healthcare", "20/03/2026", "Consultancy", "Services", "ICT"]
    first = normalize_labels(labels)
    assert first == ["Healthcare", "Consultancy", "Services"]
    assert normalize_labels(labels) == first


def test_detect_category_from_free_text():
    assert detect_category("Construction of 2km road in Ikeja") == "Construction"
    assert detect_category("Provision of software licences") == "ICT"
    assert detect_category("Supply of hospital consumables") == "Supplies"
    assert detect_category("Installation of solar street lights") == "Energy"
    assert detect_category("Expression of interest") == "General"
    assert detect_category("Expression of interest", default="Services") == "Services"
    assert detect_category("") == "General"


def test_classification_heuristics():
    assert categorize_classification("Civil works") == "Construction"
    assert categorize_classification("Computer hardware") == "ICT"
    assert categorize_classification("Pharmaceutical products") == "Healthcare"
    assert categorize_classification("Cleaning services") == "Services"
    assert categorize_classification("Printing") == "Printing"
    assert categorize_classification(None) == "General"


def test_slugs_round_trip_to_display_names():
    assert slug("Solar & Renewable") == "solar-renewable"
    assert category_from_slug("solar-renewable") == "Solar & Renewable"
    assert category_from_slug("Oil & Gas") == "Oil & Gas"
    assert category_from_slug("ict") == "ICT"
    assert category_from_slug("Dredging") == "Dredging"
