from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

# Request and response bodies use camelCase keys on the wire
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

ADDRESS_FIELDS = (
    "company_address",
    "company_city",
    "company_state",
    "company_zip",
    "home_address",
    "home_city",
    "home_state",
    "home_zip",
)


class SignupRequest(BaseModel):
    model_config = CAMEL_CONFIG

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    model_config = CAMEL_CONFIG

    email: EmailStr
    password: str


class AddressFields(BaseModel):
    model_config = CAMEL_CONFIG

    company_address: str = Field(min_length=1, max_length=255)
    company_city: str = Field(min_length=1, max_length=100)
    company_state: str = Field(min_length=1, max_length=100)
    company_zip: str = Field(min_length=6, max_length=6)
    home_address: str = Field(min_length=1, max_length=255)
    home_city: str = Field(min_length=1, max_length=100)
    home_state: str = Field(min_length=1, max_length=100)
    home_zip: str = Field(min_length=6, max_length=6)


class UserForm(AddressFields):
    """Profile plus address fields submitted to create or edit a record."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr

    def address_data(self) -> dict:
        return self.model_dump(include=set(ADDRESS_FIELDS))


class AddressResponse(BaseModel):
    model_config = CAMEL_CONFIG

    id: int
    user_id: int
    company_address: str
    company_city: str
    company_state: str
    company_zip: str
    home_address: str
    home_city: str
    home_state: str
    home_zip: str


class UserResponse(BaseModel):
    model_config = CAMEL_CONFIG

    id: int
    first_name: str
    last_name: str
    email: str
    profile_pic: str | None
    appointment_letter: str | None
    created_at: datetime
    updated_at: datetime
    address: AddressResponse | None = None


def serialize_user(user) -> dict:
    return UserResponse.model_validate(user).model_dump(by_alias=True)
