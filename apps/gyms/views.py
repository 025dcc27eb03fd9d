from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

from apps.accounts.permissions import IsSiteAdmin
from .models import Gym, GymAdmin
from .serializers import GymSerializer, GymAdminSerializer, GymAdminCreateSerializer
from .services import GymAdminService


class GymListView(generics.ListAPIView):
    serializer_class = GymSerializer
    permission_classes = [IsSiteAdmin]
    queryset = Gym.objects.all()


class GymAdminListCreateView(APIView):
    permission_classes = [IsSiteAdmin]

    def get(self, request, gym_pk):
        gym = GymAdminService.get_gym(gym_pk)
        rows = GymAdmin.objects.filter(gym=gym).select_related('user').order_by('-created_at')
        return Response({"items": GymAdminSerializer(rows, many=True).data})

    def post(self, request, gym_pk):
        serializer = GymAdminCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin = GymAdminService.grant(gym_pk, serializer.validated_data['email'])
        return Response({"admin": GymAdminSerializer(admin).data}, status=status.HTTP_201_CREATED)


class GymAdminDetailView(APIView):
    permission_classes = [IsSiteAdmin]

    def delete(self, request, gym_pk, pk):
        GymAdminService.revoke(gym_pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
