class HelperbarsError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(HelperbarsError):
    # errors related to configuration.
    pass

class TemplateSyntaxError(HelperbarsError):
    # template source could not be compiled by the engine.
    pass

class RenderError(HelperbarsError):
    # rendering aborted; the helper failure is chained as __cause__.
    pass

class CoercionError(HelperbarsError, ValueError):
    # a value could not be converted to the numeric/string form a helper needs.
    pass

class TypeMismatchError(HelperbarsError, TypeError):
    # a helper received a runtime type it does not accept.
    pass

class FeatureDisabledError(HelperbarsError):
    # a gated helper was invoked while its gate is off.
    pass

class TransportError(HelperbarsError):
    # network or cloud storage failures in outbound helpers.
    pass

class CryptoError(HelperbarsError):
    # malformed key material or a failed sign/verify/encrypt/decrypt.
    pass
