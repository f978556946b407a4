"""Address book — delivery addresses saved by a customer.

An entry is owned by the customer whose identity (mobile number) it was saved
under, and only that customer may edit or delete it. Checkout copies the fields
of an entry into the order by value, so later edits never touch placed orders.
At most one entry per customer is the default.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from retail.domain import logger, retail
from retail.errors import AddressNotFoundError, AddressOwnershipError, require_present

_REQUIRED_FIELDS = ("full_name", "email_id", "line_1", "city", "pincode")
_OPTIONAL_FIELDS = ("line_2", "latitude", "longitude", "area_id")


@retail.aggregate
class AddressBookEntry:
    customer_id = String(required=True, max_length=20)
    full_name = String(required=True, max_length=255)
    mobile_number = String(required=True, max_length=20)
    email_id = String(required=True, max_length=255)
    line_1 = String(required=True, max_length=255)
    line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    latitude = String(max_length=30)
    longitude = String(max_length=30)
    area_id = String(max_length=50)
    is_default = Boolean(default=False)
    created_at = DateTime(default=lambda: datetime.now(UTC))

    def belongs_to(self, customer_id: str) -> bool:
        return str(self.customer_id) == str(customer_id)

    def as_delivery_address(self) -> dict:
        return {
            "full_name": self.full_name,
            "mobile_number": self.mobile_number,
            "email_id": self.email_id,
            "line_1": self.line_1,
            "line_2": self.line_2,
            "city": self.city,
            "pincode": self.pincode,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "area_id": self.area_id,
        }


@retail.repository(part_of=AddressBookEntry)
class AddressBookRepository:
    def find(self, address_id: str) -> AddressBookEntry | None:
        try:
            return self.get(address_id)
        except ObjectNotFoundError:
            return None

    def list_sorted(self, customer_id: str) -> list[AddressBookEntry]:
        results = self._dao.query.filter(customer_id=customer_id).all().items
        return sorted(results, key=lambda entry: (entry.created_at, str(entry.id)))


@retail.command(part_of="AddressBookEntry")
class AddAddress:
    customer_id = String(required=True, max_length=20)
    full_name = String(required=True, max_length=255)
    mobile_number = String(required=True, max_length=20)
    email_id = String(required=True, max_length=255)
    line_1 = String(required=True, max_length=255)
    line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    latitude = String(max_length=30)
    longitude = String(max_length=30)
    area_id = String(max_length=50)
    is_default = Boolean(default=False)


@retail.command(part_of="AddressBookEntry")
class UpdateAddress:
    """Change some fields of an entry; fields left as None keep their value."""

    address_id = Identifier(required=True)
    customer_id = String(required=True, max_length=20)
    full_name = String(max_length=255)
    email_id = String(max_length=255)
    line_1 = String(max_length=255)
    line_2 = String(max_length=255)
    city = String(max_length=100)
    pincode = String(max_length=10)
    latitude = String(max_length=30)
    longitude = String(max_length=30)
    area_id = String(max_length=50)
    is_default = Boolean()


@retail.command(part_of="AddressBookEntry")
class DeleteAddress:
    address_id = Identifier(required=True)
    customer_id = String(required=True, max_length=20)


def _stripped(value):
    return value.strip() if isinstance(value, str) else value


def _owned_entry(repo, address_id, customer_id, action: str) -> AddressBookEntry:
    entry = repo.find(address_id)
    if entry is None:
        raise AddressNotFoundError(str(address_id))
    if not entry.belongs_to(customer_id):
        logger.warning(
            "Address change by another customer refused",
            customer_id=str(customer_id),
            address_id=str(address_id),
            action=action,
        )
        raise AddressOwnershipError(str(address_id), f"You can only {action} your own addresses")
    return entry


def _drop_other_defaults(repo, customer_id, keep=None):
    for existing in repo.list_sorted(customer_id):
        if existing.is_default and str(existing.id) != str(keep):
            existing.is_default = False
            repo.add(existing)


@retail.command_handler(part_of=AddressBookEntry)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(AddressBookEntry)
        required = require_present(**{name: getattr(command, name) for name in _REQUIRED_FIELDS})

        if command.is_default:
            _drop_other_defaults(repo, command.customer_id)

        entry = AddressBookEntry(
            customer_id=command.customer_id,
            mobile_number=command.mobile_number,
            is_default=command.is_default,
            **{**required, "email_id": required["email_id"].lower()},
            **{name: _stripped(getattr(command, name)) for name in _OPTIONAL_FIELDS},
        )
        repo.add(entry)
        logger.info("Address added", customer_id=command.customer_id, address_id=str(entry.id))
        return str(entry.id)

    @handle(UpdateAddress)
    def update_address(self, command):
        repo = current_domain.repository_for(AddressBookEntry)
        entry = _owned_entry(repo, command.address_id, command.customer_id, "update")

        given = {name: getattr(command, name) for name in _REQUIRED_FIELDS if getattr(command, name) is not None}
        changes = require_present(**given)
        if "email_id" in changes:
            changes["email_id"] = changes["email_id"].lower()
        for name in _OPTIONAL_FIELDS:
            if getattr(command, name) is not None:
                changes[name] = _stripped(getattr(command, name))

        if command.is_default:
            _drop_other_defaults(repo, command.customer_id, keep=entry.id)
        if command.is_default is not None:
            changes["is_default"] = command.is_default

        for name, value in changes.items():
            setattr(entry, name, value)
        repo.add(entry)

        logger.info("Address updated", address_id=str(entry.id), fields=sorted(changes))
        return str(entry.id)

    @handle(DeleteAddress)
    def delete_address(self, command):
        repo = current_domain.repository_for(AddressBookEntry)
        entry = _owned_entry(repo, command.address_id, command.customer_id, "delete")

        repo._dao.delete(entry)
        logger.info("Address deleted", address_id=str(entry.id), customer_id=command.customer_id)
        return str(entry.id)
