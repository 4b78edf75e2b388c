from django.utils.deprecation import MiddlewareMixin

from .models import Business

SESSION_KEY = "active_business_id"


class CurrentBusinessMiddleware(MiddlewareMixin):
    # Run on every request and
    # attach a .business attribute to the request, based on the logged-in user
    def process_request(self, request):
        if not request.user.is_authenticated:
            # Unauthenticated users
            request.business = None
            return

        # Default business fallback: if user didn't choose a business
        business = getattr(request.user, "default_business", None)
        if business is not None and business.owner_id != request.user.pk:
            business = None

        # If user switched businesses,
        # choice is stored in the session as "active_business_id"
        business_id = request.session.get(SESSION_KEY)
        if business_id:
            # ensure security: user must own that business
            # (prevents someone tampering with their session)
            business = Business.objects.filter(
                pk=business_id, owner=request.user).first() or business

        request.business = business


def select_business(request, business):
    """Remember `business` for the rest of the session (owner only)."""
    if not business.is_owned_by(request.user):
        return False
    request.session[SESSION_KEY] = business.pk
    request.business = business
    return True
