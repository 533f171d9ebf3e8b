# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from sqlalchemy import func

from core.rbac import Role
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from schemas import user as schemas
from database import get_db

router = APIRouter(tags=["Auth"])

# Register a new staff account; the very first account becomes SUPER_ADMIN
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = user.email.strip().lower()

    # Check for existing user
    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        write_log(
            db,
            user_id=None,
            action="REGISTER",
            resource="auth",
            status="FAIL",
            ip=client_ip(request),
            meta={"email": normalized_email, "reason": "Email exists"},
        )
        raise HTTPException(status_code=400, detail="Email already registered")

    role = Role.SUPER_ADMIN if db.query(User).count() == 0 else Role.STAFF
    new_user = User(email=normalized_email, password_hash=get_password_hash(user.password), role=role, name=user.name)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(
        db,
        user_id=new_user.id,
        action="REGISTER",
        resource="auth",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"email": new_user.email, "role": role.value},
    )
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    ip = client_ip(request)
    limit = request.app.state.rate_limiter.hit(f"login:{ip or 'unknown'}")
    if not limit.allowed:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL", ip=ip,
                  meta={"email": payload.email, "reason": "Rate limited"})
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many login attempts")

    email = payload.email.strip().lower()
    db_user = db.query(User).filter(User.email == email).first()

    # Validate credentials and log failure on error
    if not db_user or not db_user.is_active or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=ip, meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role.value})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=ip, meta={"email": db_user.email})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


# Change the password of the signed-in account
@router.post("/change-password")
def change_password(
    payload: schemas.ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ip = client_ip(request)

    if not verify_password(payload.current_password, current_user.password_hash):
        write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="auth", resource_id=current_user.id,
                  status="FAIL", ip=ip, meta={"reason": "Invalid current password"})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    if verify_password(payload.new_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="New password must be different from current password")

    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()

    write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="auth", resource_id=current_user.id,
              status="SUCCESS", ip=ip, meta={"email": current_user.email})
    return {"message": "Password changed successfully"}
