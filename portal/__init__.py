"""PharmaGuard portal application.

Server side: models, serializers, services and views for the duty roster
and the health feed.  ``portal.client`` holds the framework-free async
engine used by front ends (schedule navigation, optimistic likes and
comments).
"""
