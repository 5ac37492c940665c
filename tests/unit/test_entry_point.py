"""
Unit tests for entry point extraction.

Tests:
- Structural matching of the entry contract
- Preamble / body / trailing split
- Early return rewriting
- Passthrough fallback when no entry exists
"""

import logging

import pytest
from glsl_to_metal.transformer.entry_point import (
    EntryPointExtractor,
    is_entry_signature,
)
from glsl_to_metal.transformer.source_scanner import find_functions


@pytest.fixture
def extractor():
    """Fixture for EntryPointExtractor instance."""
    return EntryPointExtractor()


# ============================================================================
# 1. Entry Contract
# ============================================================================

@pytest.mark.parametrize("source", [
    "void mainImage(out vec4 fragColor, in vec2 fragCoord) { }",
    "void mainImage(thread float4 &fragColor, float2 fragCoord) { }",
    "void render(out vec4 c, vec2 p) { }",
])
def test_entry_signature_accepted(source):
    """Test GLSL and Metal spellings of the contract."""
    (signature,) = find_functions(source)
    assert is_entry_signature(signature)


@pytest.mark.parametrize("source", [
    "float4 mainImage(thread float4 &fragColor, float2 fragCoord) { return fragColor; }",
    "void mainImage(float4 fragColor, float2 fragCoord) { }",
    "void mainImage(thread float4 &fragColor, thread float2 &fragCoord) { }",
    "void mainImage(thread float4 &fragColor) { }",
    "void mainImage(thread float3 &fragColor, float2 fragCoord) { }",
    "void mainImage(thread float4 &fragColor, float2 fragCoord);",
])
def test_entry_signature_rejected(source):
    """Test shapes that do not match the contract."""
    (signature,) = find_functions(source)
    assert not is_entry_signature(signature)


def test_find_uses_declared_names(extractor):
    """Test that parameter names are taken from the signature."""
    source = "void render(thread float4 &outColor, float2 pixel) { outColor = float4(pixel, 0.0, 1.0); }"
    entry = extractor.find(source)
    assert entry.signature.name == 'render'
    assert entry.color_name == 'outColor'
    assert entry.coord_name == 'pixel'


def test_find_prefers_main_image(extractor):
    """Test that mainImage wins over other matching functions."""
    source = (
        "void tint(thread float4 &c, float2 p) { c *= 0.5; }\n"
        "void mainImage(thread float4 &fragColor, float2 fragCoord) { fragColor = float4(1.0); }\n"
    )
    assert extractor.find(source).signature.name == 'mainImage'


# ============================================================================
# 2. Extraction
# ============================================================================

def test_extract_splits_source(extractor):
    """Test preamble, body and trailing text."""
    source = (
        "constant float PI = 3.14159;\n"
        "float f(float x) { return x * PI; }\n"
        "void mainImage(thread float4 &fragColor, float2 fragCoord) {\n"
        "    fragColor = float4(f(1.0));\n"
        "}\n"
        "float late(float x) { return x; }\n"
    )
    extracted = extractor.extract(source)
    assert extracted.found
    assert extracted.preamble == (
        "constant float PI = 3.14159;\n"
        "float f(float x) { return x * PI; }\n"
    )
    assert extracted.body == "\n    fragColor = float4(f(1.0));\n"
    assert extracted.trailing == "\nfloat late(float x) { return x; }\n"
    assert extracted.color_name == 'fragColor'
    assert extracted.coord_name == 'fragCoord'


def test_body_with_deep_nesting(extractor):
    """Test that the body ends at the entry's own closing brace."""
    source = (
        "void mainImage(thread float4 &fragColor, float2 fragCoord) {\n"
        "    if (a) { if (b) { for (int i = 0; i < 2; i++) { if (c) { if (d) { fragColor.r += 0.1; } } } } }\n"
        "    fragColor.a = 1.0;\n"
        "}\n"
        "float after() { return 0.0; }\n"
    )
    extracted = extractor.extract(source)
    assert extracted.body.rstrip().endswith("fragColor.a = 1.0;")
    assert extracted.body.count('{') == extracted.body.count('}') == 5
    assert "after" in extracted.trailing


def test_braces_in_comments_do_not_confuse_extraction(extractor):
    """Test that a brace inside a comment is not counted."""
    source = (
        "void mainImage(thread float4 &fragColor, float2 fragCoord) {\n"
        "    // closing } here is just text\n"
        "    fragColor = float4(1.0);\n"
        "}\n"
    )
    extracted = extractor.extract(source)
    assert "fragColor = float4(1.0);" in extracted.body
    assert extracted.trailing == "\n"


# ============================================================================
# 3. Early Returns
# ============================================================================

def test_bare_return_yields_color(extractor):
    """Test that 'return;' becomes 'return fragColor;'."""
    source = (
        "void mainImage(thread float4 &fragColor, float2 fragCoord) {\n"
        "    fragColor = float4(0.0);\n"
        "    if (fragCoord.x < 10.0) { return; }\n"
        "    fragColor = float4(1.0);\n"
        "    return ;\n"
        "}\n"
    )
    body = extractor.extract(source).body
    assert "return;" not in body
    assert body.count("return fragColor;") == 2


def test_return_uses_declared_color_name(extractor):
    """Test early returns with a non-default colour name."""
    source = "void render(thread float4 &outColor, float2 p) { if (p.x > 1.0) return; outColor = float4(1.0); }"
    assert "return outColor;" in extractor.extract(source).body


def test_body_without_returns_unchanged(extractor):
    """Test that a body without early returns is copied verbatim."""
    body = "\n    float2 uv = fragCoord / iResolution;\n    fragColor = float4(uv, 0.0, 1.0);\n"
    source = "void mainImage(thread float4 &fragColor, float2 fragCoord) {" + body + "}"
    assert extractor.extract(source).body == body


def test_identifier_starting_with_return_untouched(extractor):
    """Test that only the return keyword is rewritten."""
    source = "void mainImage(thread float4 &fragColor, float2 fragCoord) { returned = 1.0; }"
    assert extractor.extract(source).body == " returned = 1.0; "


# ============================================================================
# 4. Fallback
# ============================================================================

def test_missing_entry_uses_passthrough(extractor, caplog):
    """Test the passthrough body when there is no entry function."""
    source = "float helper(float x) { return x; }\n"
    with caplog.at_level(logging.WARNING):
        extracted = extractor.extract(source)

    assert not extracted.found
    assert extracted.preamble == source
    assert extracted.trailing == ''
    assert extracted.body == (
        "fragColor = iChannel0.sample(texSampler, fragCoord / iResolution);"
    )
    assert "passthrough" in caplog.text


def test_empty_source_uses_passthrough(extractor):
    """Test that an empty shader still yields a body."""
    extracted = extractor.extract("")
    assert not extracted.found
    assert "iChannel0.sample" in extracted.body
