# dependencies.py
"""
Shared FastAPI dependencies.

Tokens are issued by the admin login service; this API only verifies them.
"""
import os

from fastapi import HTTPException, Request
from jose import JWTError, jwt
from dotenv import load_dotenv

load_dotenv()
SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"


def verify_token(request: Request) -> dict:
     """Decode the bearer token; 401 if absent, 403 if it does not verify."""
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ", 1)[1]
     if not SECRET_KEY:
          raise HTTPException(status_code=403, detail="Invalid token")
     try:
          payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
          return payload
     except JWTError:
          raise HTTPException(status_code=403, detail="Invalid token")
