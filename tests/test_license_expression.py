import pytest

from pyproject_inspector.license_expression import (
    LicenseExpressionValidator,
    LicenseSyntaxError,
    UnknownLicenseIdentifier,
    canonicalize_license_expression,
    validate_license_expression,
)


def test_valid_expressions_pass():
    for expression in [
        "MIT",
        "MIT OR Apache-2.0",
        "MIT AND (Apache-2.0 OR BSD-3-Clause)",
        "MIT WITH Classpath-exception-2.0",
        "GPL-2.0-or-later WITH Classpath-exception-2.0 OR MIT",
        "((MIT))",
        "Apache-2.0+",
        "mit or apache-2.0",
        "LicenseRef-Proprietary",
        "DocumentRef-spdx-tool-1.2:LicenseRef-MIT-Style-2",
        "MIT WITH AdditionRef-custom-linking",
    ]:
        validate_license_expression(expression)


def test_empty_expression_fails():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("")
    assert excinfo.value.code == "EMPTY_EXPRESSION"

    with pytest.raises(LicenseSyntaxError):
        validate_license_expression("   ")


def test_dangling_operator_reports_position():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT AND")
    assert excinfo.value.code == "DANGLING_OPERATOR"
    assert excinfo.value.position == 4

    for expression in ["MIT OR", "MIT WITH", "AND MIT", "MIT AND OR Apache-2.0", "(MIT OR)"]:
        with pytest.raises(LicenseSyntaxError) as excinfo:
            validate_license_expression(expression)
        assert excinfo.value.code == "DANGLING_OPERATOR", expression


def test_unbalanced_parentheses():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("(MIT")
    assert excinfo.value.code == "UNBALANCED_PARENS"
    assert excinfo.value.position == 0

    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT)")
    assert excinfo.value.code == "UNBALANCED_PARENS"
    assert excinfo.value.position == 3


def test_empty_parentheses_are_an_empty_atom():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT AND ()")
    assert excinfo.value.code == "EMPTY_ATOM"
    assert excinfo.value.position == 8


def test_unknown_operator_and_trailing_input():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT XOR Apache-2.0")
    assert excinfo.value.code == "UNKNOWN_OPERATOR"
    assert excinfo.value.position == 4

    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT WITH Classpath-exception-2.0 WITH Classpath-exception-2.0")
    assert excinfo.value.code == "TRAILING_INPUT"


def test_invalid_character_is_a_lexical_error():
    with pytest.raises(LicenseSyntaxError) as excinfo:
        validate_license_expression("MIT / Apache-2.0")
    assert excinfo.value.code == "INVALID_CHARACTER"
    assert excinfo.value.position == 4
    assert "position 4" in str(excinfo.value)


def test_unknown_identifiers():
    with pytest.raises(UnknownLicenseIdentifier) as excinfo:
        validate_license_expression("MIT OR Not-A-License")
    assert excinfo.value.code == "UNKNOWN_LICENSE"
    assert excinfo.value.identifier == "Not-A-License"
    assert excinfo.value.position == 7

    with pytest.raises(UnknownLicenseIdentifier) as excinfo:
        validate_license_expression("MIT WITH Not-An-Exception")
    assert excinfo.value.code == "UNKNOWN_EXCEPTION"


def test_malformed_identifiers_are_syntax_errors():
    for expression in ["MIT+X", "LicenseRef-", "LicenseRef-foo+", "Foo:Bar", "+"]:
        with pytest.raises(LicenseSyntaxError) as excinfo:
            validate_license_expression(expression)
        assert excinfo.value.code == "INVALID_IDENTIFIER", expression


def test_canonical_form_fixes_case_and_spacing():
    assert canonicalize_license_expression("mit  and (apache-2.0   or bsd-3-clause)") == (
        "MIT AND (Apache-2.0 OR BSD-3-Clause)"
    )
    assert canonicalize_license_expression("gpl-3.0-only with classpath-exception-2.0") == (
        "GPL-3.0-only WITH Classpath-exception-2.0"
    )


def test_validator_options():
    strict = LicenseExpressionValidator(allow_license_refs=False, allow_deprecated=False)
    with pytest.raises(UnknownLicenseIdentifier) as excinfo:
        strict.validate("LicenseRef-Internal")
    assert excinfo.value.code == "DISALLOWED_REFERENCE"

    with pytest.raises(UnknownLicenseIdentifier) as excinfo:
        strict.validate("GPL-2.0")
    assert excinfo.value.code == "DEPRECATED_LICENSE"

    validate_license_expression("GPL-2.0")

    custom = LicenseExpressionValidator(license_ids=["Acme-EULA-1.0"], exception_ids=["Acme-exception"])
    custom.validate("Acme-EULA-1.0 WITH Acme-exception OR MIT")
    assert custom.canonicalize("acme-eula-1.0") == "Acme-EULA-1.0"


def test_bundled_spdx_tables_have_expected_layout():
    from packaging.licenses._spdx import EXCEPTIONS, LICENSES

    assert LICENSES["mit"] == {"id": "MIT", "deprecated": False}
    assert LICENSES["gpl-2.0"]["deprecated"] is True
    assert EXCEPTIONS["classpath-exception-2.0"]["id"] == "Classpath-exception-2.0"
