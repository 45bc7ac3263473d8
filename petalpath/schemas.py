"""Response schemas handed to Gemini as ``response_schema``.

These constrain what the model generates. Decoded replies are validated
separately against the pydantic records in ``petalpath.models``.
"""

STRING = {"type": "string"}
STRING_LIST = {"type": "array", "items": STRING}

CARE_INSTRUCTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "watering": STRING,
        "sunlight": STRING,
        "temperature": {"type": "string", "description": "Temperature range, strictly in Celsius"},
    },
    "required": ["watering", "sunlight", "temperature"],
}

WRAPPING_TECHNIQUE_SCHEMA = {
    "type": "object",
    "properties": {
        "occasion": STRING,
        "description": STRING,
        "materials": STRING_LIST,
        "styleNotes": STRING,
    },
    "required": ["occasion", "description", "materials", "styleNotes"],
}

WEDDING_BOUQUET_SCHEMA = {
    "type": "object",
    "properties": {
        "style": STRING,
        "description": STRING,
        "stems": STRING_LIST,
        "stylingTip": STRING,
    },
    "required": ["style", "description", "stems", "stylingTip"],
}

EASY_OPTION_SCHEMA = {
    "type": "object",
    "properties": {
        "title": STRING,
        "effortTime": STRING,
        "vesselType": STRING,
        "guide": STRING_LIST,
        "proTip": STRING,
    },
    "required": ["title", "effortTime", "vesselType", "guide", "proTip"],
}

STYLING_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": STRING,
        "botanicalName": STRING,
        "meaning": STRING,
        "wrappingTechniques": {"type": "array", "items": WRAPPING_TECHNIQUE_SCHEMA},
        "weddingBouquet": WEDDING_BOUQUET_SCHEMA,
        "easyOption": EASY_OPTION_SCHEMA,
        "complementaryFlowers": STRING_LIST,
        "colorPalette": {
            "type": "array",
            "items": {"type": "string", "description": "Colour swatch, preferably a hex code"},
        },
        "careInstructions": CARE_INSTRUCTIONS_SCHEMA,
    },
    "required": [
        "name",
        "wrappingTechniques",
        "weddingBouquet",
        "easyOption",
        "complementaryFlowers",
        "colorPalette",
        "careInstructions",
    ],
}

SUBSCRIPTION_WEEK_SCHEMA = {
    "type": "object",
    "properties": {
        "week": {"type": "integer"},
        "theme": STRING,
        "mainFlower": STRING,
        "secondaryFlowers": STRING_LIST,
        "vibe": STRING,
        "careTip": STRING,
    },
    "required": ["week", "mainFlower", "theme", "vibe", "careTip"],
}

SUBSCRIPTION_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": STRING,
        "description": STRING,
        "weeks": {"type": "array", "items": SUBSCRIPTION_WEEK_SCHEMA},
    },
    "required": ["title", "description", "weeks"],
}
