"""FastAPI entrypoint for the Taylor Insurance policy service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field, field_validator

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from taylor_insurance.auth import (  # noqa: E402
    AuthFailureError,
    DuplicateUsernameError,
    User,
    UserStore,
    create_access_token,
    get_current_user,
)
from taylor_insurance.models import (  # noqa: E402
    AutoRiskProfile,
    HomeRiskProfile,
    PolicyKind,
    Vehicle,
)
from taylor_insurance.policy_book import PolicyIndexError  # noqa: E402
from taylor_insurance.policy_service import (  # noqa: E402
    PolicyEngine,
    PolicyNotFoundError,
    format_policy_summary,
    serialize_policy,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

LIABILITY_LIMITS = (1_000_000.0, 2_000_000.0)

LIABILITY_SHORTHAND = {
    "1M": 1_000_000.0,
    "$1M": 1_000_000.0,
    "2M": 2_000_000.0,
    "$2M": 2_000_000.0,
}


class CredentialsRequest(BaseModel):
    username: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=1, max_length=128)


class AutoPolicyRequest(BaseModel):
    driver_age: int = Field(ge=0)
    accident_count: int = Field(ge=0)
    make: str = Field(min_length=1, max_length=80)
    model: str = Field(min_length=1, max_length=80)
    year: int

    def to_risk(self) -> AutoRiskProfile:
        return AutoRiskProfile(
            driver_age=self.driver_age,
            accident_count=self.accident_count,
            vehicle=Vehicle(make=self.make.strip(), model=self.model.strip(), year=self.year),
        )


class HomePolicyRequest(BaseModel):
    home_age: int = Field(ge=0)
    dwelling_type: str = "standalone"
    heating_type: str
    location: str
    home_value: float = Field(gt=0)
    liability_limit: float = 1_000_000.0

    @field_validator("liability_limit", mode="before")
    @classmethod
    def parse_liability_limit(cls, value):
        # Only the two offered limits are kept; anything else becomes 1M.
        if isinstance(value, str):
            text = value.strip().upper()
            if text in LIABILITY_SHORTHAND:
                return LIABILITY_SHORTHAND[text]
            try:
                value = float(text.replace(",", "").lstrip("$"))
            except ValueError:
                return LIABILITY_LIMITS[0]
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value) if float(value) in LIABILITY_LIMITS else LIABILITY_LIMITS[0]
        return value

    def to_risk(self) -> HomeRiskProfile:
        return HomeRiskProfile(
            home_age=self.home_age,
            dwelling_type=self.dwelling_type.strip(),
            heating_type=self.heating_type.strip(),
            location=self.location.strip(),
            home_value=self.home_value,
            liability_limit=self.liability_limit,
        )


def get_engine(request: Request) -> PolicyEngine:
    return request.app.state.engine


def _token_response(message: str, user: User) -> dict:
    token = create_access_token({"sub": user.username})
    return {
        "message": message,
        "access_token": token,
        "token_type": "bearer",
        "user": {"username": user.username},
    }


def _find_policy(engine: PolicyEngine, user: User, policy_number: str):
    try:
        return engine.get_policy(user, policy_number)
    except PolicyNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def create_app(store: UserStore | None = None, engine: PolicyEngine | None = None) -> FastAPI:
    if engine is None:
        engine = PolicyEngine(users=store if store is not None else UserStore())

    app = FastAPI(
        title="Taylor Insurance",
        version="1.0.0",
        description="Auto and home policy quotes, purchase, renewal, and cancellation",
    )
    app.state.engine = engine
    app.state.user_store = engine.users

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/signup", status_code=status.HTTP_201_CREATED)
    def signup(payload: CredentialsRequest, engine: PolicyEngine = Depends(get_engine)):
        try:
            user = engine.register(payload.username, payload.password)
        except DuplicateUsernameError as exc:
            raise HTTPException(status_code=400, detail="Username already exists") from exc
        return _token_response("Account created successfully", user)

    @app.post("/login")
    def login(payload: CredentialsRequest, engine: PolicyEngine = Depends(get_engine)):
        try:
            user = engine.login(payload.username, payload.password)
        except AuthFailureError as exc:
            raise HTTPException(status_code=401, detail="Invalid username or password") from exc
        return _token_response("Login successful", user)

    @app.post("/quote/auto")
    def quote_auto(payload: AutoPolicyRequest, engine: PolicyEngine = Depends(get_engine)):
        premium = engine.request_quote(PolicyKind.AUTO, payload.to_risk())
        return {"kind": PolicyKind.AUTO.value, "premium": round(premium, 2)}

    @app.post("/quote/home")
    def quote_home(payload: HomePolicyRequest, engine: PolicyEngine = Depends(get_engine)):
        premium = engine.request_quote(PolicyKind.HOME, payload.to_risk())
        return {"kind": PolicyKind.HOME.value, "premium": round(premium, 2)}

    @app.post("/policies/auto", status_code=status.HTTP_201_CREATED)
    def start_auto_policy(
        payload: AutoPolicyRequest,
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        policy = engine.start_auto_policy(user, payload.to_risk())
        return {"message": "Auto policy created successfully", "policy": serialize_policy(policy)}

    @app.post("/policies/home", status_code=status.HTTP_201_CREATED)
    def start_home_policy(
        payload: HomePolicyRequest,
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        policy = engine.start_home_policy(user, payload.to_risk())
        return {"message": "Home policy created successfully", "policy": serialize_policy(policy)}

    @app.get("/policies")
    def list_policies(
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        return {"policies": [serialize_policy(p) for p in engine.list_policies(user)]}

    @app.get("/policies/summary", response_class=PlainTextResponse)
    def policies_summary(
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ) -> str:
        policies = engine.list_policies(user)
        if not policies:
            return "You have no active policies."
        return "\n".join(format_policy_summary(i, p) for i, p in enumerate(policies, start=1))

    @app.post("/policies/{policy_number}/renew")
    def renew_policy(
        policy_number: str,
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        policy = _find_policy(engine, user, policy_number)
        engine.renew(policy, user)
        return {"message": "Policy renewed successfully", "policy": serialize_policy(policy)}

    @app.post("/policies/{policy_number}/cancel")
    def cancel_policy(
        policy_number: str,
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        policy = _find_policy(engine, user, policy_number)
        engine.cancel(policy, user)
        return {
            "message": "Policy canceled. You will still be billed for the rest of the month.",
            "policy": serialize_policy(policy),
        }

    @app.delete("/policies/{index}")
    def remove_policy(
        index: int,
        user: User = Depends(get_current_user),
        engine: PolicyEngine = Depends(get_engine),
    ):
        try:
            removed = engine.cancel_and_remove(user, index)
        except PolicyIndexError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"message": "Policy removed successfully", "policy": serialize_policy(removed)}

    return app


app = create_app()
