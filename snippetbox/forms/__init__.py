# Forms package init
"""
Snippetbox — Form Decoding & Validation
=========================================

What:  Turns a submitted form body into a typed value and collects the
       validation failures found in it.

Module Inventory:
    - validator.py:  ValidationResult and the check predicates
    - decoder.py:    Form (typed value + ValidationResult) and decode_post_form()

Typical handler flow:
    form = await decode_post_form(request, SnippetCreateInput)   # 400 if malformed
    form.check_field(not_blank(form.data.title), "title", "This field cannot be blank")
    if not form.valid:
        return render(request, 422, "create", form=form.to_state())
"""

from snippetbox.forms.decoder import Form, decode_post_form
from snippetbox.forms.validator import (
    EMAIL_RX,
    ValidationResult,
    matches,
    max_chars,
    min_chars,
    not_blank,
    permitted_values,
)

__all__ = [
    "EMAIL_RX",
    "Form",
    "ValidationResult",
    "decode_post_form",
    "matches",
    "max_chars",
    "min_chars",
    "not_blank",
    "permitted_values",
]
