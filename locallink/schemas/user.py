"""Caller identity as handed over by the upstream auth collaborator."""

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """
    Already-authenticated caller. Built from the X-User-ID / X-Username
    headers; credentials are never checked by this service.
    """

    user_id: str
    username: str
