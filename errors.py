"""
Exceptions shared by the stay pricing modules.

Raised inside helpers and absorbed at each public operation's boundary,
where they are logged and replaced by a safe default.
"""


class PricingEngineError(Exception):
    """Base exception for pricing engine errors"""
    pass

class InvalidConfigurationError(PricingEngineError):
    pass

class CareDataError(PricingEngineError):
    pass

class PackageDefinitionError(PricingEngineError):
    pass

class HolidayLookupError(PricingEngineError):
    pass
