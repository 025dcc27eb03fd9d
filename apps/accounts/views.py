from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import ButcherAdmin
from .permissions import IsSiteAdmin
from .serializers import UserSerializer, ButcherAdminSerializer, ButcherAdminCreateSerializer
from .services import RoleService, ButcherAdminService


class MeView(APIView):
    """
    Who am I and which staff screens may I open.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        roles = RoleService.get_roles(request.user)
        return Response({
            "ok": True,
            "user": {**UserSerializer(request.user).data, "roles": roles.as_dict()},
        })


class ButcherAdminListCreateView(APIView):
    permission_classes = [IsSiteAdmin]

    def get(self, request):
        rows = ButcherAdmin.objects.select_related('user').order_by('-created_at')
        return Response({"items": ButcherAdminSerializer(rows, many=True).data})

    def post(self, request):
        serializer = ButcherAdminCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin = ButcherAdminService.grant(**serializer.validated_data)
        return Response({"admin": ButcherAdminSerializer(admin).data}, status=status.HTTP_201_CREATED)


class ButcherAdminDetailView(APIView):
    permission_classes = [IsSiteAdmin]

    def delete(self, request, pk):
        ButcherAdminService.revoke(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
