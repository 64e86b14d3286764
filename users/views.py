"""Account and JWT endpoints.

Sign-in, refresh and verify wrap simplejwt's views and log an auth event
for every attempt. Sign-out blacklists the refresh token.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from .logging import log_auth_event
from .serializers import RegistrationSerializer, SignInSerializer, SignOutSerializer, UserMeSerializer

DETAIL = inline_serializer(name="AuthDetail", fields={"detail": rf_serializers.CharField()})


@extend_schema(
    tags=["User Endpoints"],
    summary="Get current user profile",
    responses={200: UserMeSerializer, 401: OpenApiResponse(description="Unauthorized")},
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def current_user(request):
    return Response(UserMeSerializer(request.user).data)


current_user.throttle_scope = "profile"


@extend_schema(
    tags=["User Endpoints"],
    summary="Register",
    description="Creates a customer account. Admin and delivery accounts are created in the Django admin.",
    request=RegistrationSerializer,
    responses={201: UserMeSerializer},
)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def register(request):
    serializer = RegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        log_auth_event("register", request, status="invalid")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    user = serializer.save()
    log_auth_event("register", request, user=user)
    return Response(UserMeSerializer(user).data, status=status.HTTP_201_CREATED)


register.throttle_scope = "register"


class AuditedTokenMixin:
    """Log one auth event per token request, labelled by outcome."""

    throttle_classes = [ScopedRateThrottle]
    audit_action = ""

    @extend_schema(tags=["User Endpoints"])
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        log_auth_event(self.audit_action, request, status="success" if resp.status_code == 200 else "failed")
        return resp


class SignInView(AuditedTokenMixin, TokenObtainPairView):
    """Obtain tokens with an email or phone identifier; the access token carries the role."""

    throttle_scope = "signin"
    audit_action = "signin"
    serializer_class = SignInSerializer


class RefreshView(AuditedTokenMixin, TokenRefreshView):
    throttle_scope = "token_refresh"
    audit_action = "token_refresh"


class VerifyView(AuditedTokenMixin, TokenVerifyView):
    throttle_scope = "token_verify"
    audit_action = "token_verify"


class SignOutView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signout"
    permission_classes = [AllowAny]

    @extend_schema(tags=["User Endpoints"], request=SignOutSerializer, responses={205: DETAIL, 400: DETAIL})
    def post(self, request):
        serializer = SignOutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"detail": "Refresh token is required."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError:
            log_auth_event("signout", request, status="invalid_token")
            return Response({"detail": "Invalid token."}, status=status.HTTP_400_BAD_REQUEST)
        log_auth_event("signout", request)
        return Response({"detail": "Signed out."}, status=status.HTTP_205_RESET_CONTENT)
