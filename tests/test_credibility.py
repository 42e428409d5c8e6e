"""Source credibility heuristics, bias detection and cross-referencing."""

import pytest

from template_advisor.models import KnowledgeRecord, TrustLevel
from template_advisor.services.credibility import (
    GOVERNMENT_SCORE,
    check_source_credibility,
    cross_reference,
    detect_bias,
    trust_level_for,
    validate_source,
    verify_information,
)


def test_government_domain_gets_fixed_score():
    cred = check_source_credibility("https://www.hhs.gov/hipaa/index.html")
    assert cred.domain == "hhs.gov"
    assert cred.score == GOVERNMENT_SCORE
    assert cred.factors == ["Government source"]
    assert cred.trust_level == TrustLevel.MEDIUM


def test_trusted_educational_domain_stacks_bonuses():
    cred = check_source_credibility("mit.edu")
    assert cred.score == 1.0
    assert cred.factors == ["Trusted domain", "Educational institution"]
    assert cred.trust_level == TrustLevel.HIGH


def test_trusted_nonprofit():
    cred = check_source_credibility("https://hbr.org/2023/05/process")
    assert cred.score == pytest.approx(0.9)
    assert "Non-profit organization" in cred.factors


def test_url_with_credentials_and_port():
    cred = check_source_credibility("https://user:pw@www.gartner.com:443/reports")
    assert cred.domain == "gartner.com"
    assert cred.score == pytest.approx(0.8)


def test_unknown_commercial_domain_is_neutral():
    cred = check_source_credibility("example.com")
    assert cred.score == 0.5
    assert cred.factors == []


@pytest.mark.parametrize(
    "domain, expected",
    [
        ("myprocessblog.net", 0.3),
        ("wiki.example.org", 0.4),
        ("forum.example.com", 0.3),
    ],
)
def test_user_generated_content_is_penalised(domain, expected):
    cred = check_source_credibility(domain)
    assert cred.score == pytest.approx(expected)
    assert "User-generated content" in cred.factors
    assert cred.trust_level == TrustLevel.LOW


@pytest.mark.parametrize(
    "score, level",
    [(0.8, TrustLevel.HIGH), (0.79, TrustLevel.MEDIUM), (0.5, TrustLevel.MEDIUM), (0.49, TrustLevel.LOW)],
)
def test_trust_level_thresholds(score, level):
    assert trust_level_for(score) == level


def test_validate_source_keeps_original_url():
    result = validate_source("https://www.iso.org/standard/27001")
    assert result.url == "https://www.iso.org/standard/27001"
    assert result.trust_level == TrustLevel.HIGH


def test_promotional_language_is_flagged():
    bias = detect_bias("The best, industry-leading, revolutionary workflow platform")
    assert bias.has_bias
    assert bias.bias_type == "promotional"
    assert bias.confidence == pytest.approx(0.45)
    assert bias.explanation == "Found 3 promotional bias indicators"
    # "leading" inside "industry-leading" is not a separate hit
    assert "leading" not in bias.indicators


def test_two_indicators_stay_under_threshold():
    bias = detect_bias("You should always review, never skip")
    assert not bias.has_bias
    assert bias.confidence == pytest.approx(0.3)
    assert bias.bias_type is None


def test_indicator_matching_respects_word_boundaries():
    bias = detect_bias("Bestow the allocation to nonexistent everyday tasks")
    assert not bias.has_bias
    assert bias.confidence == 0.0


def test_cross_reference_warns_on_low_credibility_and_scores_completeness():
    results = [
        {
            "title": "Ten tips",
            "content": "A neutral summary of approval workflows",
            "url": "https://someblog.net/tips",
            "published_at": "2024-03-01",
        },
        KnowledgeRecord(id="kb-1", title="Approval matrix", description="Who signs what"),
    ]
    report = cross_reference(results)
    assert report.overall_valid
    assert [w.message for w in report.warnings] == ["Low credibility source: someblog.net"]
    assert report.warnings[0].type == "source"
    assert report.completeness_score == 75


def test_cross_reference_flags_biased_content():
    report = cross_reference([
        {"title": "Vendor page", "content": "Amazing, fantastic, incredible results", "url": "https://iso.org/x"},
    ])
    assert len(report.warnings) == 1
    assert report.warnings[0].type == "content"
    assert "emotional" in report.warnings[0].message


def test_cross_reference_of_nothing():
    report = cross_reference([])
    assert report.warnings == []
    assert report.completeness_score == 0


def test_verify_information_splits_sources():
    result = verify_information(
        "process mining reduces cycle time",
        ["Process mining reduces cycle time by 20%", "Unrelated article about hiring"],
    )
    assert result.supporting_sources == ["Process mining reduces cycle time by 20%"]
    assert result.conflicting_sources == ["Unrelated article about hiring"]
    assert result.confidence == 0.5
    assert result.verified


def test_verify_information_without_sources():
    result = verify_information("anything", [])
    assert not result.verified
    assert result.confidence == 0.0
