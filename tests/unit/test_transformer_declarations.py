"""
Unit tests for texture calls, address spaces and parameter qualifiers.

Tests:
- TextureCallRewriter: method-call sampling, nested coordinates, variants
- AddressSpaceNormalizer: const arrays, const scalars, mutable globals
- ParameterQualifierRewriter: out/inout/in in definitions only
"""

import logging

import pytest
from glsl_to_metal.transformer.address_space import AddressSpaceNormalizer
from glsl_to_metal.transformer.parameter_qualifiers import ParameterQualifierRewriter
from glsl_to_metal.transformer.texture_calls import TextureCallRewriter


@pytest.fixture
def textures():
    """Fixture for TextureCallRewriter instance."""
    return TextureCallRewriter()


@pytest.fixture
def normalizer():
    """Fixture for AddressSpaceNormalizer instance."""
    return AddressSpaceNormalizer()


@pytest.fixture
def qualifiers():
    """Fixture for ParameterQualifierRewriter instance."""
    return ParameterQualifierRewriter()


# ============================================================================
# 1. Texture Calls
# ============================================================================

def test_texture_to_sample(textures):
    """Test the basic texture() rewrite."""
    source = "float4 c = texture(iChannel0, uv);"
    assert textures.transform(source) == "float4 c = iChannel0.sample(texSampler, uv);"


def test_texture_with_expression_coordinate(textures):
    """Test a coordinate computed from ambient values."""
    source = "texture(iChannel0, fragCoord/iResolution)"
    assert textures.transform(source) == "iChannel0.sample(texSampler, fragCoord/iResolution)"


def test_texture_with_nested_parentheses(textures):
    """Test that nested calls in the coordinate are kept whole."""
    source = "texture(iChannel0, fract(uv * float2(2.0, 3.0)) + offset(t))"
    assert textures.transform(source) == (
        "iChannel0.sample(texSampler, fract(uv * float2(2.0, 3.0)) + offset(t))"
    )


def test_nested_texture_calls(textures):
    """Test a texture lookup inside another lookup's coordinate."""
    source = "texture(iChannel0, uv + texture(iChannel0, uv).xy * 0.1)"
    assert textures.transform(source) == (
        "iChannel0.sample(texSampler, uv + iChannel0.sample(texSampler, uv).xy * 0.1)"
    )


def test_texture2d_legacy_name(textures):
    """Test that texture2D() is rewritten too."""
    assert textures.transform("texture2D(tex, uv)") == "tex.sample(texSampler, uv)"


def test_texture_with_bias(textures):
    """Test the three-argument bias form."""
    assert textures.transform("texture(tex, uv, 1.0)") == (
        "tex.sample(texSampler, uv, bias(1.0))"
    )


def test_texture_lod(textures):
    """Test textureLod -> level()."""
    assert textures.transform("textureLod(tex, uv, 2.0)") == (
        "tex.sample(texSampler, uv, level(2.0))"
    )


def test_texel_fetch(textures):
    """Test texelFetch -> read()."""
    assert textures.transform("texelFetch(tex, int2(p), 0)") == (
        "tex.read(uint2(int2(p)), uint(0))"
    )


def test_texture_size(textures):
    """Test textureSize -> get_width/get_height."""
    assert textures.transform("textureSize(tex, 0)") == (
        "int2(tex.get_width(0), tex.get_height(0))"
    )


def test_unbalanced_texture_call_untouched(textures):
    """Test graceful degradation on a broken call."""
    source = "texture(iChannel0, uv"
    assert textures.transform(source) == source


def test_member_named_texture_untouched(textures):
    """Test that obj.texture(...) is not a sampling call."""
    source = "m.texture(a, b) + mytexture(a, b)"
    assert textures.transform(source) == source


def test_texture_in_comment_untouched(textures):
    """Test that commented-out calls are left alone."""
    source = "// texture(iChannel0, uv)\nfloat a = 1.0;"
    assert textures.transform(source) == source


def test_no_source_texture_tokens_remain(textures):
    """Test that every texture() call is gone after rewriting."""
    source = "c = texture(a, uv) + texture(b, uv * 2.0) + texture(a, texture(b, uv).xy);"
    result = textures.transform(source)
    assert 'texture(' not in result
    assert result.count('.sample(texSampler') == 4


# ============================================================================
# 2. Address Spaces
# ============================================================================

def test_const_array_declaration(normalizer):
    """Test case (a): const T[N] name -> constant T name[N]."""
    source = "const float3[3] palette = {float3(1.0), float3(0.5), float3(0.0)};\n"
    assert normalizer.transform(source) == (
        "constant float3 palette[3] = {float3(1.0), float3(0.5), float3(0.0)};\n"
    )


def test_array_constructor_initializer(normalizer):
    """Test that GLSL array constructors become brace initialisers."""
    source = "const float3[3] palette = float3[3](float3(1.0), float3(0.5), float3(0.0));\n"
    assert normalizer.transform(source) == (
        "constant float3 palette[3] = {float3(1.0), float3(0.5), float3(0.0)};\n"
    )


def test_c_style_const_array(normalizer):
    """Test const T name[N] = T[](...) declarations."""
    source = "const float weights[2] = float[](0.25, 0.75);\n"
    assert normalizer.transform(source) == "constant float weights[2] = {0.25, 0.75};\n"


def test_multiline_array_constructor(normalizer):
    """Test an array constructor spanning several lines."""
    source = (
        "const float2[2] offsets = float2[2](\n"
        "    float2(1.0, 0.0),\n"
        "    float2(0.0, 1.0)\n"
        ");\n"
    )
    assert normalizer.transform(source) == (
        "constant float2 offsets[2] = {\n"
        "    float2(1.0, 0.0),\n"
        "    float2(0.0, 1.0)\n"
        "};\n"
    )


def test_const_scalar_declaration(normalizer):
    """Test case (b): const scalars and vectors."""
    source = "const float PI = 3.14159;\nconst float2 CENTER = float2(0.5);\n"
    assert normalizer.transform(source) == (
        "constant float PI = 3.14159;\nconstant float2 CENTER = float2(0.5);\n"
    )


def test_mutable_global_promoted_to_constant(normalizer, caplog):
    """Test case (c): a mutable global silently becomes immutable."""
    source = "float gain = 2.0;\n"
    with caplog.at_level(logging.WARNING):
        result = normalizer.transform(source)
    assert result == "constant float gain = 2.0;\n"
    assert "Promoting mutable global 'gain'" in caplog.text


def test_locals_inside_functions_untouched(normalizer):
    """Test that declarations inside bodies keep their qualifiers."""
    source = (
        "float f() {\n"
        "    const float k = 2.0;\n"
        "    float x = k;\n"
        "    return x;\n"
        "}\n"
    )
    assert normalizer.transform(source) == source


def test_function_definitions_not_promoted(normalizer):
    """Test that top-level function headers are not declarations."""
    source = "float wobble(float t) { return t; }\n"
    assert normalizer.transform(source) == source


def test_address_space_idempotent(normalizer):
    """Test that promoted declarations are not promoted again."""
    source = "const float PI = 3.14;\nfloat gain = 2.0;\nconst float3[2] p = float3[2](a, b);\n"
    once = normalizer.transform(source)
    assert normalizer.transform(once) == once


# ============================================================================
# 3. Parameter Qualifiers
# ============================================================================

def test_out_and_in_in_entry_signature(qualifiers):
    """Test the canonical mainImage signature."""
    source = "void mainImage(out float4 fragColor, in float2 fragCoord) { }"
    assert qualifiers.transform(source) == (
        "void mainImage(thread float4 &fragColor, float2 fragCoord) { }"
    )


def test_inout_parameter(qualifiers):
    """Test that inout becomes a thread reference."""
    source = "void tint(inout float3 col, float amount) { col *= amount; }"
    assert qualifiers.transform(source) == (
        "void tint(thread float3 &col, float amount) { col *= amount; }"
    )


def test_const_in_parameter(qualifiers):
    """Test that const in keeps const."""
    source = "float f(const in float k) { return k; }"
    assert qualifiers.transform(source) == "float f(const float k) { return k; }"


def test_precision_qualifiers_dropped(qualifiers):
    """Test that precision words are removed from parameters."""
    source = "float f(in highp float x) { return x; }"
    assert qualifiers.transform(source) == "float f(float x) { return x; }"


def test_prototype_rewritten(qualifiers):
    """Test that forward declarations are rewritten too."""
    source = "void shade(out float4 c);"
    assert qualifiers.transform(source) == "void shade(thread float4 &c);"


def test_call_sites_untouched(qualifiers):
    """Test that qualifiers are only rewritten inside signatures."""
    source = (
        "void tint(inout float3 col) { col *= 0.5; }\n"
        "void main2() { float3 in_col = float3(1.0); tint(in_col); }\n"
    )
    result = qualifiers.transform(source)
    assert "void tint(thread float3 &col)" in result
    assert "tint(in_col);" in result
    assert "float3 in_col = float3(1.0);" in result


def test_out_array_parameter(qualifiers):
    """Test that an out array becomes a reference to the whole array."""
    source = "void fill(out float a[3]) { a[0] = 1.0; }"
    assert qualifiers.transform(source) == (
        "void fill(thread float (&a)[3]) { a[0] = 1.0; }"
    )


def test_inout_array_parameter_with_spacing(qualifiers):
    """Test an inout array whose size is separated from the name."""
    source = "void blur(inout float3 taps [5], float k);"
    result = qualifiers.transform(source)
    assert result == "void blur(thread float3 (&taps)[5], float k);"
    assert "&taps[" not in result
