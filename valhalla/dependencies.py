from typing import Annotated

from fastapi import Depends, HTTPException, Request

from valhalla.client import ValhallaDB


def get_valhalla(request: Request) -> ValhallaDB:
    """FastAPI dependency: the client opened by the application lifespan."""
    client = getattr(request.app.state, "valhalla", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Valhalla client not initialized")
    return client


Valhalla = Annotated[ValhallaDB, Depends(get_valhalla)]
