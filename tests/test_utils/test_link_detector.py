import pytest

from instagrab.utils.link_detector import (
    PostKind,
    is_allowed_media_url,
    is_post_url,
    parse_post_url,
    with_query_param,
)

MEDIA_DOMAINS = ["instagram.com", "cdninstagram.com"]


class TestPostUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.instagram.com/p/ABC123/",
            "https://www.instagram.com/p/ABC123",
            "https://instagram.com/p/ABC123/",
            "http://instagram.com/p/ABC123/",
            "https://www.instagram.com/reel/Cx_Yz-123/",
            "https://www.instagram.com/tv/ABC123/",
            "https://www.instagram.com/some.user_1/p/ABC123/",
            "https://www.instagram.com/some.user_1/reel/ABC123",
            "https://www.instagram.com/p/ABC123/?utm_source=x",
            "https://www.instagram.com/p/ABC123?igsh=abc&img_index=2",
        ],
    )
    def test_accepts_post_shapes(self, url):
        assert is_post_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "instagram.com/p/ABC123/",
            "ftp://www.instagram.com/p/ABC123/",
            "https://www.instagram.com/p/",
            "https://www.instagram.com/p//",
            "https://www.instagram.com/stories/user/123/",
            "https://www.instagram.com/user/",
            "https://www.instagram.com/a/b/p/ABC123/",
            "https://www.instagram.com/p/ABC123/extra/",
            "https://www.instagram.com/p/ABC123/#comments",
            "https://m.instagram.com/p/ABC123/",
            "https://evilinstagram.com/p/ABC123/",
            "https://instagram.com.attacker.net/p/ABC123/",
            "https://www.tiktok.com/p/ABC123/",
            "https://www.instagram.com/p/ABC123/\n",
            " https://www.instagram.com/p/ABC123/",
        ],
    )
    def test_rejects_other_shapes(self, url):
        assert not is_post_url(url)
        assert parse_post_url(url) is None

    def test_parse_post(self):
        post = parse_post_url("https://www.instagram.com/p/ABC123/")
        assert post is not None
        assert post.kind == PostKind.POST
        assert post.shortcode == "ABC123"
        assert post.username is None
        assert post.url == "https://www.instagram.com/p/ABC123/"

    def test_parse_reel_with_username(self):
        post = parse_post_url("https://instagram.com/creator.name/reel/XyZ_9-a")
        assert post is not None
        assert post.kind == PostKind.REEL
        assert post.shortcode == "XyZ_9-a"
        assert post.username == "creator.name"

    def test_query_string_does_not_change_shortcode(self):
        bare = parse_post_url("https://www.instagram.com/p/ABC123/")
        tracked = parse_post_url("https://www.instagram.com/p/ABC123/?utm_source=x")
        assert bare.shortcode == tracked.shortcode
        assert bare.kind == tracked.kind


class TestWithQueryParam:
    def test_no_existing_query(self):
        assert (
            with_query_param("https://www.instagram.com/p/ABC/", "__a=1")
            == "https://www.instagram.com/p/ABC/?__a=1"
        )

    def test_existing_query(self):
        assert (
            with_query_param("https://www.instagram.com/p/ABC/?utm_source=x", "__a=1")
            == "https://www.instagram.com/p/ABC/?utm_source=x&__a=1"
        )


class TestAllowedMediaUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://scontent-lax3-1.cdninstagram.com/v/t51/img.jpg?stp=1&oh=abc",
            "https://x.cdninstagram.com/img.jpg",
            "https://cdninstagram.com/img.jpg",
            "https://www.instagram.com/some/media.mp4",
            "http://instagram.com/media.jpg",
            "https://SCONTENT.CDNINSTAGRAM.COM/img.jpg",
        ],
    )
    def test_accepts_instagram_hosts(self, url):
        assert is_allowed_media_url(url, MEDIA_DOMAINS)

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "https://example.com/img.jpg",
            "https://example.com/?u=https://x.cdninstagram.com/img.jpg",
            "https://evilinstagram.com/img.jpg",
            "https://instagram.com.attacker.net/img.jpg",
            "https://evilinstagram.com.attacker.net/img.jpg",
            "https://cdninstagram.com@attacker.net/img.jpg",
            "ftp://x.cdninstagram.com/img.jpg",
            "file:///etc/passwd",
            "//x.cdninstagram.com/img.jpg",
            "http://[::1/img.jpg",
            "https://x.cdninstagram.com:99999/a.jpg",
            "https://x.cdninstagram.com:abc/a.jpg",
        ],
    )
    def test_rejects_other_hosts(self, url):
        assert not is_allowed_media_url(url, MEDIA_DOMAINS)

    def test_custom_domains(self):
        assert is_allowed_media_url("https://video.fbcdn.net/v.mp4", ["fbcdn.net"])
        assert not is_allowed_media_url("https://x.cdninstagram.com/img.jpg", ["fbcdn.net"])
