from django.db import connections
from django.http import JsonResponse

from ..models import RosterRevision


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        revision = RosterRevision.objects.filter(pk=RosterRevision.SINGLETON_ID).values_list('number', flat=True).first()
        return JsonResponse({'ok': True, 'db': bool(row and row[0]==1), 'rosterRevision': revision or 0})
    except Exception as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)
