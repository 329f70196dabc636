"""Core routes, mounted under /api/.

    GET    health/                 liveness + database ping, no auth
    POST   auth/login/             username/password -> access, refresh, user
    POST   auth/refresh/           refresh -> access
    GET    auth/me/                the authenticated user with role
    PUT    auth/change-password/   change own password
    POST   auth/register/          create a staff account (admin)
    GET    users/                  list staff accounts (admin)
    GET/PUT/PATCH/DELETE users/<pk>/  one staff account (admin)
    GET    practitioners/          active dentists (any role)
"""

from django.urls import include, path

from clinic_backend.core import views

app_name = 'core'

auth_patterns = [
    path('login/', views.LoginView.as_view(), name='login'),
    path('refresh/', views.RefreshView.as_view(), name='refresh'),
    path('me/', views.MeView.as_view(), name='me'),
    path('change-password/', views.ChangePasswordView.as_view(), name='change_password'),
    path('register/', views.RegisterView.as_view(), name='register'),
]

urlpatterns = [
    path('health/', views.health, name='health'),
    path('auth/', include(auth_patterns)),
    path('users/', views.UserListView.as_view(), name='users'),
    path('users/<int:pk>/', views.UserDetailView.as_view(), name='user_detail'),
    path('practitioners/', views.PractitionerListView.as_view(), name='practitioners'),
]
