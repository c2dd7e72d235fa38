from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # POST  /api/auth/register/  - Create operator, returns tokens
    # POST  /api/auth/login/     - Sign in, returns tokens
    # GET   /api/auth/user/      - Own profile
    # PATCH /api/auth/user/      - Change display name
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('user/', views.current_user, name='current-user'),
]
