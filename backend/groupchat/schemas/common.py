from typing import Annotated

from pydantic import Field

from groupchat.models import MAX_SQL_INT

SQL_INT_MIN = -MAX_SQL_INT - 1

# Integers that fit the storage columns; anything larger is a validation error
SqlInt = Annotated[int, Field(ge=SQL_INT_MIN, le=MAX_SQL_INT)]
