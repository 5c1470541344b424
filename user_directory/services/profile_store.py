from sqlalchemy.orm import Session

from user_directory.models.address import Address


def build_address(user_id: int, fields: dict) -> Address:
    return Address(user_id=user_id, **fields)


def find_by_user_id(db: Session, user_id: int) -> Address | None:
    return db.query(Address).filter(Address.user_id == user_id).first()


def apply_address(address: Address, fields: dict) -> Address:
    for field, value in fields.items():
        setattr(address, field, value)
    return address
