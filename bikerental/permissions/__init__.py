"""
.. autoclasstree:: bikerental.permissions

This module contains the various permission types. A permission is essentially
just an object (either function or class) that can be called asynchronously
and raises a RoutePermissionError in the case of a failed permission.
"""

from bikerental.permissions.decorators import requires
from bikerental.permissions.users import UserMatchesToken, UserIsAdmin, ValidToken
