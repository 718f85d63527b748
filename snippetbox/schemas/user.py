"""
Snippetbox — Account Form Schemas
===================================

What:  Typed shapes of the signup and login submissions.
How:   decode_post_form() fills these from the form body. They declare types
       and defaults only; the content rules (not blank, email pattern,
       password length) are checked by the handlers so every failure becomes
       a field error rather than a decode error.
"""

from pydantic import BaseModel


class SignupInput(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginInput(BaseModel):
    email: str = ""
    password: str = ""
