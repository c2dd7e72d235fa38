from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from .serializers import (
    OperatorSerializer,
    RegistrationSerializer,
    LoginSerializer,
    AuthResponseSerializer,
)
from .services import (
    register_user,
    authenticate_user,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
)


def _signed_in(user):
    """Profile plus a fresh JWT pair."""
    refresh = RefreshToken.for_user(user)
    return {
        'user': OperatorSerializer(user).data,
        'tokens': {'refresh': str(refresh), 'access': str(refresh.access_token)},
    }


@extend_schema(
    request=RegistrationSerializer,
    responses={201: AuthResponseSerializer},
    description="Create an operator account and return JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = RegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = register_user(**serializer.validated_data)
    except UserRegistrationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(_signed_in(user), status=status.HTTP_201_CREATED)


@extend_schema(
    request=LoginSerializer,
    responses={200: AuthResponseSerializer},
    description="Exchange email and password for JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(_signed_in(user))


@extend_schema(
    methods=['GET'],
    responses={200: OperatorSerializer},
    description="Profile of the signed-in operator.",
    tags=['auth'],
)
@extend_schema(
    methods=['PATCH'],
    request=OperatorSerializer,
    responses={200: OperatorSerializer},
    description="Change the signed-in operator's display name.",
    tags=['auth'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def current_user(request):
    if request.method == 'GET':
        return Response(OperatorSerializer(request.user).data)

    serializer = OperatorSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)
