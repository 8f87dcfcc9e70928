"""Constants shared by the geocoding and reconciliation modules.

Threshold values are defaults only; the running values come from
``Settings`` through ``ReconciliationThresholds``.
"""

# Reconciliation thresholds
DISTANCE_THRESHOLD_METERS = 100.0
MIN_CONFIDENCE = 0.3
ACCEPTABLE_CONFIDENCE = 0.5
HIGH_CONFIDENCE = 0.8

# Mean earth radius used by the haversine distance, in meters
EARTH_RADIUS_METERS = 6371000.0

# Provider identifiers
PROVIDER_LOCATIONIQ = "locationiq"
PROVIDER_NOMINATIM = "nominatim"

# Confidence scorer weights
CITY_WEIGHT = 0.30
STATE_WEIGHT = 0.20
NEIGHBORHOOD_WEIGHT = 0.20
STREET_WEIGHT = 0.20
STREET_NAME_WEIGHT = 0.15
STREET_NUMBER_WEIGHT = 0.05
HOUSE_NUMBER_WEIGHT = 0.10

# Street-type abbreviations, matched as whole words after diacritics removal.
# A trailing period on the abbreviation is consumed with it.
STREET_ABBREVIATIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("av",), "avenida"),
    (("r",), "rua"),
    (("rod",), "rodovia"),
    (("estr",), "estrada"),
    (("tv", "trav"), "travessa"),
    (("al",), "alameda"),
    (("pc", "pca"), "praca"),
    (("lg",), "largo"),
    (("q", "qd"), "quadra"),
    (("lt",), "lote"),
)

# Address provider component keys, in order of preference
CITY_KEYS = ("city", "town", "village", "municipality")
SUBURB_KEYS = ("suburb", "neighbourhood", "city_district", "quarter")


class Notes:
    """Decision tags appended to ``AddressResult.note``."""

    LEARNED_USED = "coordenadas-aprendidas-usadas"
    QUADRA_LOTE = "quadra-lote-manual-review"
    NOT_FOUND = "endereco-nao-encontrado"
    NO_COMPATIBLE_RESULT = "nenhum-resultado-compativel"
    GEOCODING_ERROR = "erro-geocodificacao"
    ROW_ERROR = "erro-processamento-linha"
    HIGH_CONFIDENCE_BOTH = "confianca-alta-forward:{forward}%-reverse:{reverse}%"
    ORIGINAL_VALIDATED = "coordenadas-originais-validadas:{reverse}%"
    GEOCODE_CORRECTED = "geocodificacao-corrigida:{forward}%"
    MEDIUM_CONFIDENCE = "confianca-media-revisao-sugerida:{best}%"
    GEOCODED = "geocodificado:{forward}%"
    LOW_CONFIDENCE_REVIEW = "confianca-baixa-revisao-necessaria:{forward}%"
    LOW_CONFIDENCE = "confianca-baixa:{forward}%"
    DISTANCE_CONFLICT = (
        "coordenadas-geocodificadas-diferem-muito-da-planilha-revisao-manual"
    )
    OPERATOR_CONFIRMED = "coordenadas-da-planilha-confirmadas-por-geocodificacao"
    GEOCODED_BY = "geocodificado-{provider}"
    OPERATOR_FALLBACK = "coordenadas-da-planilha-usadas-geocodificacao-falhou"
    NO_COORDINATES = "nao-foi-possivel-obter-coordenadas"
