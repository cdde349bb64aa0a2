"""Tests for the Piwik tracking tag."""

import pytest

from analytics_piwik import PiwikConfig, setup_piwik
from analytics_piwik.tag import NO_URL_COMMENT, tracking_tag


class TestTrackingTag:
    """Test tracking tag generation."""

    def test_disabled_embed_returns_empty(self):
        config = PiwikConfig(url="piwik.khm.li", embed=False)
        assert tracking_tag(config) == ""

    def test_missing_url_returns_comment(self):
        config = PiwikConfig(embed=True)
        assert tracking_tag(config) == NO_URL_COMMENT

    def test_tag_uses_configured_url(self):
        config = PiwikConfig(url="https://piwik.khm.li/piwik.php", embed=True)
        tag = tracking_tag(config)

        assert tag.startswith('<script type="text/javascript">')
        assert "+'://piwik.khm.li/';" in tag
        assert "push(['setSiteId',1]);" in tag
        assert "src=u+'piwik.js'" in tag
        assert '<img src="http://piwik.khm.li/piwik.php?idSite=1&amp;rec=1"' in tag
        assert tag.endswith("</noscript>")

    def test_tag_is_squished(self):
        tag = tracking_tag(PiwikConfig(url="piwik.khm.li", embed=True))
        assert "\n" not in tag
        assert "  " not in tag

    def test_site_id_and_url_override(self):
        config = PiwikConfig(url="piwik.khm.li", site_id=3, embed=True)
        tag = tracking_tag(config, site_id=5, url="stats.example.org/")

        assert "push(['setSiteId',5]);" in tag
        assert "stats.example.org/piwik.php?idSite=5" in tag
        assert "piwik.khm.li" not in tag

    def test_configured_site_id(self):
        tag = tracking_tag(PiwikConfig(url="piwik.khm.li", site_id=3, embed=True))
        assert "push(['setSiteId',3]);" in tag

    def test_url_argument_without_config(self):
        tag = tracking_tag(PiwikConfig(embed=True), url="piwik.khm.li")
        assert "piwik.khm.li/piwik.php" in tag

    def test_quotes_in_url_are_escaped(self):
        tag = tracking_tag(PiwikConfig(embed=True), url="evil.example.org/a'b\"c")

        assert "+'://evil.example.org/a\\'b\"c/';" in tag
        assert 'src="http://evil.example.org/a&#39;b&#34;c/piwik.php' in tag

    def test_non_numeric_site_id_is_quoted(self):
        tag = tracking_tag(PiwikConfig(url="piwik.khm.li", embed=True), site_id="1']);x('")

        assert "push(['setSiteId','1\\']);x(\\'']);" in tag
        assert "idSite=1&#39;]);x(&#39;&amp;rec=1" in tag


class TestPiwikTag:
    """Test the tag() helper on the Piwik facade."""

    def test_production_mode_embeds(self):
        piwik = setup_piwik(url="piwik.khm.li", mode="production")
        assert "piwik.khm.li" in piwik.tag()

    def test_development_mode_skips(self):
        piwik = setup_piwik(url="piwik.khm.li")
        assert piwik.tag() == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
