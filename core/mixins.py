# core/mixins.py

from django.views.generic.edit import ModelFormMixin


class UserStampedMixin(ModelFormMixin):
    """
    Fills created_by / updated_by from request.user before the form is saved.

    Use with any ModelForm based view (CreateView / UpdateView).
    Does not touch validation or the redirect.
    """

    def form_valid(self, form):
        user = getattr(self.request, "user", None)
        instance = form.instance

        if user and user.is_authenticated:
            # first save only
            if not instance.pk and hasattr(instance, "created_by"):
                instance.created_by = user

            if hasattr(instance, "updated_by"):
                instance.updated_by = user

        return super().form_valid(form)
