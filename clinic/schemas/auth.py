from pydantic import BaseModel, EmailStr


class SendOtp(BaseModel):
    email: EmailStr


class VerifyOtp(BaseModel):
    email: EmailStr
    otp: str


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class DoctorLogin(BaseModel):
    email: EmailStr
    password: str
