"""
Users
-----

The user profiles. A profile is keyed by the identity the authentication
provider issued, and its type decides whether the user is an admin.
"""
from typing import Union, Optional, List, Dict

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from bikerental import logger
from bikerental.models import User
from bikerental.models.user import UserType


class UserExistsError(Exception):
    """
    :param errors: Maps each field that clashed with another user to a message.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__(errors)
        self.errors = errors


def _clashing_fields(error: IntegrityError) -> Dict[str, str]:
    """Reads the fields out of a unique constraint failure, such as "UNIQUE constraint failed: user.email"."""
    return {
        str(arg).rsplit(".", 1)[-1]: "User with that item already exists!"
        for arg in error.args if "unique" in str(arg).lower()
    }


async def _resolve(target: Union[User, str]) -> User:
    return await User.get(id=target) if isinstance(target, str) else target


async def get_users(*, name: str = None) -> List[User]:
    """
    Gets all the users, ordered by name.

    :param name: Only the users whose name contains this.
    """
    query = User.all()

    if name is not None:
        query = query.filter(name__icontains=name)

    return await query.order_by("name")


async def get_user(*, user_id: str = None) -> Optional[User]:
    """Gets the user with the given identity, or None."""
    if user_id is None:
        return None

    return await User.filter(id=user_id).first()


async def create_user(user_id: str, name: str, email: str, type: UserType = UserType.CUSTOMER) -> User:
    """
    Creates the profile of a user.

    :param user_id: The identity issued by the authentication provider.
    :raises UserExistsError: If the identity or the email is taken.
    """
    try:
        async with in_transaction():
            user = await User.create(id=user_id, name=name, email=email, type=type)
    except IntegrityError as error:
        errors = _clashing_fields(error)
        if not errors:
            raise
        raise UserExistsError(errors) from error

    logger.info("Created user %s", user)
    return user


async def update_user(target: Union[User, str], *, name=None, email=None) -> User:
    """Changes the name or email of a user, leaving out what isn't given."""
    user = await _resolve(target)

    if name:
        user.name = name
    if email:
        user.email = email

    async with in_transaction():
        await user.save()
    return user


async def set_user_type(target: Union[User, str], level: UserType) -> User:
    """Makes a user an admin, or a customer again."""
    user = await _resolve(target)
    user.type = level

    async with in_transaction():
        await user.save()

    logger.info("User %s is now a %s", user, level.value)
    return user
