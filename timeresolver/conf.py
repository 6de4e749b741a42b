from datetime import datetime
from functools import wraps

from dateutil import tz

from .gregorian import DayOfWeekType
from .lexicon import parse_weekday


class SettingValidationError(ValueError):
    pass


DEFAULT_SETTINGS = {
    "RELATIVE_BASE": None,
    "TIMEZONE": "local",
    "RETURN_AS_TIMEZONE_AWARE": False,
    "MAX_ANCHOR_DEPTH": 32,
    "FIRST_DAY_OF_WEEK": "monday",
    "WEEKEND_START": "saturday",
}


class Settings:
    """Control and configure default resolution behavior.

    Attributes are the upper-case keys of ``DEFAULT_SETTINGS``. A modified
    copy is obtained with :meth:`replace`; the module-level ``settings``
    object is the default used when callers pass none.

    Example usage::

        >>> from timeresolver.conf import settings
        >>> custom = settings.replace(mod_settings={"WEEKEND_START": "friday"})
        >>> custom.WEEKEND_START
        'friday'
    """

    _default = True

    def __init__(self, settings=None):
        self._mod_settings = {}
        self._updateall(DEFAULT_SETTINGS.items())
        if settings:
            self._updateall(settings.items())

    def _updateall(self, iterable):
        for key, value in iterable:
            setattr(self, key, value)

    def replace(self, mod_settings=None, **kwds):
        for k, v in kwds.items():
            if v is None:
                raise TypeError('Invalid {{"{}": {}}}'.format(k, v))

        # unknown keys are kept so that check_settings can reject them
        for x, v in (mod_settings or {}).items():
            kwds.setdefault(x, v)

        new_settings = Settings(settings=dict(self._mod_settings, **kwds))
        new_settings._mod_settings = dict(self._mod_settings, **kwds)
        new_settings._default = False
        check_settings(new_settings)
        return new_settings

    @property
    def first_day_of_week(self) -> DayOfWeekType:
        return parse_weekday(self.FIRST_DAY_OF_WEEK)

    @property
    def weekend_start(self) -> DayOfWeekType:
        return parse_weekday(self.WEEKEND_START)


settings = Settings()


def apply_settings(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        kwargs["settings"] = kwargs.get("settings", settings)

        if kwargs["settings"] is None:
            kwargs["settings"] = settings

        if isinstance(kwargs["settings"], dict):
            kwargs["settings"] = settings.replace(mod_settings=kwargs["settings"])

        if not isinstance(kwargs["settings"], Settings):
            raise TypeError(
                "settings can only be either dict or instance of Settings class"
            )

        return f(*args, **kwargs)

    return wrapper


def _check_weekday(name, value):
    if parse_weekday(value) is None:
        raise SettingValidationError(
            '"{}" is not a valid value for {}, it should be a weekday name, '
            'like "monday" or "saturday"'.format(value, name)
        )


def _check_max_depth(name, value):
    if value < 1:
        raise SettingValidationError(
            "{} must be a positive integer, got {}".format(name, value)
        )


def _check_timezone(name, value):
    if "local" in value.lower():
        return
    if tz.gettz(value) is None:
        raise SettingValidationError(
            '"{}" is not a valid value for {}, it should be "local" or a '
            'timezone name, like "Europe/Rome"'.format(value, name)
        )


def check_settings(settings):
    """
    Check if provided settings are valid, if not it raises `SettingValidationError`.
    Only checks for the modified settings.
    """
    settings_values = {
        "RELATIVE_BASE": {
            "type": datetime,
        },
        "TIMEZONE": {
            "type": str,
            "extra_check": _check_timezone,
        },
        "RETURN_AS_TIMEZONE_AWARE": {
            "type": bool,
        },
        "MAX_ANCHOR_DEPTH": {
            "type": int,
            "extra_check": _check_max_depth,
        },
        "FIRST_DAY_OF_WEEK": {
            "type": str,
            "extra_check": _check_weekday,
        },
        "WEEKEND_START": {
            "type": str,
            "extra_check": _check_weekday,
        },
    }

    modified_settings = settings._mod_settings  # check only modified settings

    # check settings keys:
    for setting in modified_settings:
        if setting not in settings_values:
            raise SettingValidationError('"{}" is not a valid setting'.format(setting))

    for setting_name, setting_value in modified_settings.items():
        if setting_value is None and DEFAULT_SETTINGS[setting_name] is None:
            continue

        setting_type = type(setting_value)
        setting_props = settings_values[setting_name]

        # check type:
        if not setting_type.__name__ == setting_props["type"].__name__:
            raise SettingValidationError(
                '"{}" must be "{}", not "{}".'.format(
                    setting_name, setting_props["type"].__name__, setting_type.__name__
                )
            )

        # check extra conditions
        extra_check = setting_props.get("extra_check")
        if extra_check:
            extra_check(setting_name, setting_value)
