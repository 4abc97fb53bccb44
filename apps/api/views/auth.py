# Views for account registration and login

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from apps.core.models import User
from apps.core.services import accounts
from ..responses import success_response
from ..serializers import RegisterSerializer, LoginSerializer, UserSerializer


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register(request):
    """Self-registration for students; the account waits for admin approval"""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    profile = accounts.register_student(**serializer.validated_data)

    return success_response(
        {'userId': profile.user_id},
        'Registration successful! Your account is pending admin approval.',
        status.HTTP_201_CREATED
    )


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    token, user = accounts.login(**serializer.validated_data)
    user = User.objects.select_related('student_profile', 'staff_profile').get(id=user.id)

    return success_response(
        {'token': token, 'user': UserSerializer(user).data},
        'Login successful.'
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """Current user with role-specific details"""
    user = User.objects.select_related('student_profile', 'staff_profile').get(id=request.user.id)
    return success_response(UserSerializer(user).data)
