"""FastAPI dependencies shared by the v1 routers."""

from fastapi import Request

from common.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.db
