import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from . import schemas, models, auth
from .db import get_db

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already registered"


@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def register(data: schemas.UserCreate, db: Session = Depends(get_db)):
    email = data.email.lower()
    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN)

    user = models.User(email=email, hashed_password=auth.get_password_hash(data.password), is_active=True)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent registration won the unique index
        db.rollback()
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN)
    db.refresh(user)
    logger.info("User %s registered", user.id)
    return user


@router.post("/login")
def login(data: schemas.UserCreate, response: Response, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == data.email.lower()).first()
    if not user or not auth.verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    access = auth.create_access_token({"sub": str(user.id)})
    response.set_cookie(auth.TOKEN_COOKIE, access, httponly=True, samesite="lax")
    return {"access_token": access, "token_type": "bearer"}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(auth.TOKEN_COOKIE)
    return {"msg": "Logged out"}


@router.get("/me", response_model=schemas.UserOut)
def me(user_id: int = Depends(auth.require_user_id), db: Session = Depends(get_db)):
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
