"""Core app views.

Contains:
- health: Health check endpoint
- LoginView: JWT token obtain with user/role info
- RefreshView: JWT token refresh
- MeView: Current authenticated user info
- ChangePasswordView, RegisterView: own password, admin-created accounts
- UserListView, UserDetailView: admin user management
- PractitionerListView: active dentists for booking forms
"""

import logging

from django.db import connection
from django.http import JsonResponse

from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from rest_framework_simplejwt.tokens import RefreshToken

from clinic_backend.core.permissions import HasClinicRole, IsAdmin, request_identity
from clinic_backend.core.serializers import (
    LoginSerializer,
    PasswordChangeSerializer,
    PractitionerSerializer,
    RefreshSerializer,
    UserCreateSerializer,
    UserListQuerySerializer,
    UserMeSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from clinic_backend.core.services import UserService

logger = logging.getLogger(__name__)


def health(request):
    """Health check endpoint - no authentication required."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1;')
    except Exception as exc:
        logger.error('health check failed: %s', exc)
        return JsonResponse({'status': 'error', 'detail': str(exc)}, status=503)

    return JsonResponse({'status': 'ok'})


class LoginView(APIView):
    """Obtain JWT access and refresh tokens.

    POST /api/auth/login/
    Body: {"username": "...", "password": "..."}
    Returns: {"user": {...}, "access": "...", "refresh": "..."}
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role_name

        return Response(
            {
                'user': UserMeSerializer(user).data,
                'access': str(refresh.access_token),
                'refresh': str(refresh),
            },
            status=status.HTTP_200_OK,
        )


class RefreshView(APIView):
    """Refresh JWT access token.

    POST /api/auth/refresh/
    Body: {"refresh": "..."}
    Returns: {"access": "..."}
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        refresh = RefreshToken(serializer.validated_data['refresh'])

        return Response(
            {
                'access': str(refresh.access_token),
            },
            status=status.HTTP_200_OK,
        )


class MeView(APIView):
    """Get current authenticated user info.

    GET /api/auth/me/
    Returns: {"id": ..., "username": "...", "email": "...", "role": {...}}
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        serializer = UserMeSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """Change the caller's own password.

    PUT /api/auth/change-password/
    Body: {"current_password": "...", "new_password": "...", "confirm_password": "..."}
    Existing tokens stay valid until they expire.
    """

    permission_classes = [IsAuthenticated]

    def put(self, request, *args, **kwargs):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        UserService().change_password(request.user, data['current_password'], data['new_password'])
        return Response({'detail': 'Password updated.'}, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        return self.put(request, *args, **kwargs)


class RegisterView(APIView):
    """Create a staff account (admin only).

    POST /api/auth/register/
    Body: {"username", "email", "password", "role", "first_name"?, "last_name"?, "calendar_color"?}
    """

    permission_classes = [IsAdmin]

    def post(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService().register(request_identity(request), **serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserListView(generics.ListAPIView):
    """GET /api/users/?role=&search="""

    permission_classes = [IsAdmin]
    serializer_class = UserSerializer

    def get_queryset(self):
        query = UserListQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        filters = query.validated_data
        return UserService().list(
            request_identity(self.request),
            role=filters.get('role'),
            search=filters.get('search') or None,
        )


class UserDetailView(generics.GenericAPIView):
    """GET, PUT/PATCH or DELETE one staff account (admin only)."""

    permission_classes = [IsAdmin]
    serializer_class = UserSerializer

    def get(self, request, pk):
        user = UserService().get(request_identity(request), pk)
        return Response(UserSerializer(user).data)

    def put(self, request, pk):
        write_serializer = UserUpdateSerializer(data=request.data)
        write_serializer.is_valid(raise_exception=True)

        user = UserService().update(request_identity(request), pk, **write_serializer.validated_data)
        return Response(UserSerializer(user).data)

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        UserService().delete(request_identity(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PractitionerListView(generics.ListAPIView):
    """GET /api/practitioners/ - active dentists, readable by every role."""

    permission_classes = [HasClinicRole]
    serializer_class = PractitionerSerializer

    def get_queryset(self):
        return UserService().practitioners(request_identity(self.request))
