from .. import validators


class TestDriveFormSession:
    """
    In-memory state of one buyer's scheduling form for one vehicle.

    Mirrors what the form does: hydrate from a draft, validate on blur and
    on step advance, autosave after edits, and drop pending saves on close.
    """

    def __init__(self, vehicle_id, draft_store, autosaver=None):
        self.vehicle_id = vehicle_id
        self.draft_store = draft_store
        self.autosaver = autosaver
        self.data = dict(validators.DEFAULT_PAYLOAD)
        self.errors = {}
        self.is_dirty = False

    def open(self):
        draft = self.draft_store.load_draft(self.vehicle_id)
        self.data = dict(validators.DEFAULT_PAYLOAD)
        if draft:
            self.data.update({k: v for k, v in draft.items() if k in validators.PAYLOAD_FIELDS})
        self.errors = {}
        self.is_dirty = False
        return self.data

    def update_field(self, field, value):
        if field not in validators.PAYLOAD_FIELDS:
            raise KeyError(field)
        if field == "preferred_date" and value != self.data.get("preferred_date"):
            # A time slot only makes sense for the date it was picked on
            self.data["preferred_time"] = ""
        self.data[field] = value
        self.is_dirty = True
        if self.autosaver is not None:
            self.autosaver.schedule(self.vehicle_id, self.data)

    def blur(self, field, now=None):
        error = validators.validate_field(field, self.data.get(field), context=self.data, now=now)
        if error:
            self.errors[field] = error
        else:
            self.errors.pop(field, None)
        return error

    def validate_step(self, step, now=None):
        step_errors = validators.validate_step(self.data, step, now=now)
        for field in validators.STEP_FIELDS[step]:
            self.errors.pop(field, None)
        self.errors.update(step_errors)
        return not step_errors

    @property
    def is_valid(self):
        return not validators.validate_all(self.data)

    def close(self):
        if self.autosaver is not None:
            self.autosaver.cancel(self.vehicle_id)
