from instagrab.utils.jsonld import find_jsonld_object, iter_jsonld_objects


def _script(body: str, type_attr: str = "application/ld+json") -> str:
    return f'<script type="{type_attr}">{body}</script>'


def test_iter_yields_objects_in_document_order():
    html = (
        _script('{"@type": "Person", "name": "a"}')
        + _script('[{"@type": "ImageObject"}, "skip-me", {"@type": "VideoObject"}]')
    )

    types = [obj["@type"] for obj in iter_jsonld_objects(html)]

    assert types == ["Person", "ImageObject", "VideoObject"]


def test_iter_skips_malformed_blocks():
    html = _script("{not json") + _script('{"@type": "ImageObject"}')

    objects = list(iter_jsonld_objects(html))

    assert objects == [{"@type": "ImageObject"}]


def test_iter_ignores_other_script_types():
    html = (
        _script('{"@type": "ImageObject"}', type_attr="application/json")
        + '<script>var x = {"@type": "ImageObject"};</script>'
    )
    assert list(iter_jsonld_objects(html)) == []


def test_iter_handles_extra_attributes_and_multiline():
    html = (
        "<script nonce=\"abc\" type='application/ld+json' data-x=\"1\">\n"
        '  {"@type": "ImageObject",\n   "contentUrl": "https://x.cdninstagram.com/a.jpg"}\n'
        "</script>"
    )
    obj = find_jsonld_object(html, "ImageObject")
    assert obj["contentUrl"] == "https://x.cdninstagram.com/a.jpg"


def test_find_returns_first_match():
    html = (
        _script('{"@type": "ImageObject", "contentUrl": "first"}')
        + _script('{"@type": "ImageObject", "contentUrl": "second"}')
    )
    assert find_jsonld_object(html, "ImageObject")["contentUrl"] == "first"


def test_find_matches_type_lists():
    html = _script('{"@type": ["CreativeWork", "ImageObject"], "contentUrl": "u"}')
    assert find_jsonld_object(html, "ImageObject")["contentUrl"] == "u"


def test_find_no_match():
    html = _script('{"@type": "VideoObject"}')
    assert find_jsonld_object(html, "ImageObject") is None
    assert find_jsonld_object("<html></html>", "ImageObject") is None
