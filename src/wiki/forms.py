"""Forms for editing and creating pages."""

from django import forms

from .services.git_storage import MAX_COMMIT_MESSAGE_LENGTH, PAGE_FORMATS

FORMAT_CHOICES = [(fmt, fmt.capitalize()) for fmt in PAGE_FORMATS]


class EditPageForm(forms.Form):
    """Edit of an existing page.

    Fields left out of the submission stay ``None`` so that the page keeps its
    current value for them.
    """

    content = forms.CharField(widget=forms.Textarea, required=False, strip=False)
    format = forms.ChoiceField(choices=FORMAT_CHOICES, required=False)
    rename = forms.CharField(max_length=255, required=False)
    message = forms.CharField(max_length=MAX_COMMIT_MESSAGE_LENGTH, required=False)

    def clean_rename(self):
        rename = self.cleaned_data["rename"].strip()
        if "/" in rename or "\x00" in rename:
            raise forms.ValidationError("Page names cannot contain '/'.")
        return rename or None

    def clean(self):
        cleaned_data = super().clean()
        for field in ("content", "format"):
            if field not in self.data or (field == "format" and not cleaned_data.get(field)):
                cleaned_data[field] = None
        return cleaned_data


class CreatePageForm(forms.Form):
    """A new page."""

    content = forms.CharField(widget=forms.Textarea, required=False, strip=False)
    format = forms.ChoiceField(choices=FORMAT_CHOICES)
    message = forms.CharField(max_length=MAX_COMMIT_MESSAGE_LENGTH, required=False)
