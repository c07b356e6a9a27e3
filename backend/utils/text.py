import re
import unicodedata

def slugify(value: str) -> str:
    # "Summer Linen Shirt!" -> "summer-linen-shirt"
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")
