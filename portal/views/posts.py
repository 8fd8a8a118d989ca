"""
Health feed endpoints: public reads, likes and comments, plus the
password-protected administration of posts.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.response import Response

from ..permissions import HasAdminCredential
from ..serializers.health import (
    CommentCreateSerializer,
    CommentSerializer,
    HealthPostSerializer,
    HealthPostWriteSerializer,
)
from ..services import health as svc
from ..throttling import AdminRateThrottle, CommentRateThrottle, LikeRateThrottle


@api_view(['GET'])
def posts(request):
    """Return published posts, newest first."""
    qs = svc.visible_posts()
    return Response({'ok': True, 'data': HealthPostSerializer(qs, many=True).data})


@api_view(['POST'])
@throttle_classes([LikeRateThrottle])
def post_like(request, pk: int):
    likes = svc.increment_likes(pk)
    return Response({'ok': True, 'postId': pk, 'likes': likes})


@api_view(['POST'])
@throttle_classes([LikeRateThrottle])
def post_unlike(request, pk: int):
    likes = svc.decrement_likes(pk)
    return Response({'ok': True, 'postId': pk, 'likes': likes})


@api_view(['GET'])
def post_comments(request, pk: int):
    """Comments of a post, oldest first."""
    qs = svc.list_comments(pk)
    return Response({'ok': True, 'data': CommentSerializer(qs, many=True).data})


@api_view(['POST'])
@throttle_classes([CommentRateThrottle])
def post_comment_add(request, pk: int):
    s = CommentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    comment = svc.add_comment(pk, s.validated_data['content'])
    return Response({'ok': True, 'data': CommentSerializer(comment).data}, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([HasAdminCredential])
def admin_posts(request):
    """Every post, including scheduled ones."""
    return Response({'ok': True, 'data': HealthPostSerializer(svc.all_posts(), many=True).data})


@api_view(['POST'])
@permission_classes([HasAdminCredential])
@throttle_classes([AdminRateThrottle])
def admin_post_create(request):
    s = HealthPostWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    post = svc.create_post(
        title=vd['title'],
        content=vd['content'],
        image_url=vd.get('image_url'),
        publish_at=vd.get('publish_at'),
    )
    return Response(
        {'ok': True, 'message': 'Fiche santé créée avec succès.', 'data': HealthPostSerializer(post).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(['POST'])
@permission_classes([HasAdminCredential])
@throttle_classes([AdminRateThrottle])
def admin_post_update(request, pk: int):
    s = HealthPostWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    # only fields present in the request are changed
    optional = {k: vd[k] for k in ('image_url', 'publish_at') if k in vd}
    post = svc.update_post(pk, title=vd['title'], content=vd['content'], **optional)
    return Response({'ok': True, 'message': 'Fiche santé mise à jour.', 'data': HealthPostSerializer(post).data})


@api_view(['POST'])
@permission_classes([HasAdminCredential])
@throttle_classes([AdminRateThrottle])
def admin_post_delete(request, pk: int):
    if svc.delete_post(pk):
        return Response({'ok': True, 'message': 'Fiche santé supprimée.'})
    return Response({'ok': True, 'message': 'Fiche santé déjà supprimée.'})
