"""Tests for lexical URL analysis."""

import pytest

from linksentry.analyzer.lexical import LexicalAnalyzer


@pytest.fixture
def analyzer():
    return LexicalAnalyzer()


class TestLexicalAnalyzer:
    """Structural URL markers."""

    def test_clean_https_url_scores_zero(self, analyzer):
        result = analyzer.analyze("https://example.com/")
        assert result.score_delta == 0
        assert result.reasons == ()

    def test_ip_host_without_https_with_keyword(self, analyzer):
        result = analyzer.analyze("http://192.168.1.5/free-gift")

        assert result.reasons.count("No HTTPS detected") == 1
        assert result.reasons.count("Suspicious keywords in URL") == 1
        assert result.reasons.count("Hostname is an IP address (common in phishing)") == 1
        assert result.reasons == (
            "No HTTPS detected",
            "Suspicious keywords in URL",
            "Hostname is an IP address (common in phishing)",
            "Many digits in hostname",
            "Deep subdomain chain",
        )
        assert result.score_delta == 5 + 6 + 12 + 4 + 4

    def test_bracketed_ipv6_host(self, analyzer):
        result = analyzer.analyze("https://[2001:db8::1]/login")
        assert "Hostname is an IP address (common in phishing)" in result.reasons

    def test_keyword_match_is_case_insensitive_and_counted_once(self, analyzer):
        result = analyzer.analyze("https://example.com/Account/CONFIRM?step=verification")
        assert result.reasons == ("Suspicious keywords in URL",)
        assert result.score_delta == 6

    def test_punycode_host(self, analyzer):
        result = analyzer.analyze("https://shop.xn--80ak6aa92e.com/")
        assert result.reasons[0].startswith("Punycode domain detected (possible lookalike)")
        assert result.score_delta >= 10

    def test_suspicious_tld_names_the_tld(self, analyzer):
        result = analyzer.analyze("https://shop.example.xyz/")
        assert result.reasons == ("Suspicious TLD detected (.xyz)",)
        assert result.score_delta == 8

    def test_many_hyphens(self, analyzer):
        result = analyzer.analyze("https://my-secure-bank-login.com/")
        assert result.reasons == ("Many hyphens in hostname",)
        assert result.score_delta == 4

    def test_many_digits_wins_over_digit_run(self, analyzer):
        result = analyzer.analyze("https://abc12345.com/")
        assert result.reasons == ("Many digits in hostname",)
        assert result.score_delta == 4

    def test_digit_run(self, analyzer):
        result = analyzer.analyze("https://shop123.com/")
        assert result.reasons == ("Suspicious digit pattern in hostname",)
        assert result.score_delta == 3

    def test_scattered_digits_are_not_a_run(self, analyzer):
        result = analyzer.analyze("https://a1b2c3.com/")
        assert result.score_delta == 0

    def test_long_hostname(self, analyzer):
        result = analyzer.analyze("https://thisisaveryveryverylonghostnameexample.com/")
        assert result.reasons == ("Very long hostname",)

    def test_deep_subdomain_chain(self, analyzer):
        result = analyzer.analyze("https://a.b.c.example.com/")
        assert result.reasons == ("Deep subdomain chain",)
        assert result.score_delta == 4

    @pytest.mark.parametrize(
        "url",
        ["https://bit.ly/abc", "https://www.bit.ly/abc", "https://t.co/xyz"],
    )
    def test_shortener_domains(self, analyzer, url):
        result = analyzer.analyze(url)
        assert "Known redirect/shortener domain" in result.reasons

    def test_tracking_parameters(self, analyzer):
        result = analyzer.analyze("https://example.com/?utm_source=news&x=1")
        assert result.reasons == ("Ad/affiliate tracking parameters",)
        assert result.score_delta == 2

    def test_tracking_parameter_must_be_a_prefix(self, analyzer):
        result = analyzer.analyze("https://example.com/?href=abc")
        assert result.score_delta == 0

    def test_tracking_parameters_in_path_are_ignored(self, analyzer):
        result = analyzer.analyze("https://example.com/gclid=abc")
        assert result.score_delta == 0

    @pytest.mark.parametrize("url", ["", "not a url", "example.com/path"])
    def test_unparseable_url_is_advisory(self, analyzer, url):
        result = analyzer.analyze(url)
        assert result.score_delta == 0
        assert result.reasons == ()

    def test_custom_lists(self):
        analyzer = LexicalAnalyzer(
            suspicious_keywords=["wallet"],
            suspicious_tlds=[".app"],
        )
        result = analyzer.analyze("https://my.wallet.app/")
        assert result.reasons == (
            "Suspicious keywords in URL",
            "Suspicious TLD detected (.app)",
        )


@pytest.mark.parametrize(
    "url",
    ["http://2130706433/login", "http://192.168.01.1/login", "http://127.1/login"],
)
def test_numeric_ipv4_forms_are_ip_hosts(url):
    result = LexicalAnalyzer().analyze(url)
    assert result.reasons.count("Hostname is an IP address (common in phishing)") == 1
