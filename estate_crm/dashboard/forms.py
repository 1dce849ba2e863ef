from django import forms


class SystemSettingsForm(forms.Form):
    company_commission_percentage = forms.DecimalField(
        min_value=0, max_value=100, decimal_places=2
    )
    agent_commission_split = forms.DecimalField(
        min_value=0, max_value=100, decimal_places=2
    )
    overdue_contact_days = forms.IntegerField(min_value=1)
    default_lead_recipient_email = forms.EmailField(required=False)

    def to_payload(self):
        data = dict(self.cleaned_data)
        # The API stores percentages as strings
        data["company_commission_percentage"] = str(data["company_commission_percentage"])
        data["agent_commission_split"] = str(data["agent_commission_split"])
        return data


class ParishForm(forms.Form):
    name = forms.CharField(max_length=100)

    def clean_name(self):
        name = self.cleaned_data["name"].strip()
        if not name:
            raise forms.ValidationError("Parish name cannot be blank.")
        return name

    def to_payload(self):
        return dict(self.cleaned_data)


class BudgetTierForm(forms.Form):
    display_name = forms.CharField(max_length=100)
    order = forms.IntegerField(min_value=0, initial=0)

    def clean_display_name(self):
        display_name = self.cleaned_data["display_name"].strip()
        if not display_name:
            raise forms.ValidationError("Display name cannot be blank.")
        return display_name

    def to_payload(self):
        return dict(self.cleaned_data)
