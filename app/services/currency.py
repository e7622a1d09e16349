"""Indian Rupee presentation: digit grouping and amounts in words."""

RUPEE = "₹"


def format_inr(amount: float) -> str:
    """Format with Indian grouping and no decimals. E.g. 1234567 -> '₹12,34,567'."""
    n = int(round(amount))
    digits = str(abs(n))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    sign = "-" if n < 0 else ""
    return f"{sign}{RUPEE}{digits}"


def amount_in_words(n: float) -> str:
    """Convert number to words (Indian style). E.g. 52000 -> 'Rupees Fifty Two Thousand Only'."""
    n = int(round(n))
    if n == 0:
        return "Rupees Zero Only"
    ones = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
    tens = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
    teens = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen"]

    def up_to_99(x: int) -> str:
        if x < 10:
            return ones[x]
        if x < 20:
            return teens[x - 10]
        t, o = divmod(x, 10)
        return (tens[t] + " " + ones[o]).strip()

    def up_to_999(x: int) -> str:
        if x < 100:
            return up_to_99(x)
        h, r = divmod(x, 100)
        return (ones[h] + " Hundred " + up_to_99(r)).strip() if r else ones[h] + " Hundred"

    def up_to_lakh(x: int) -> str:
        if x < 1000:
            return up_to_999(x)
        q, r = divmod(x, 1000)
        return (up_to_99(q) + " Thousand " + up_to_999(r)).strip() if r else up_to_99(q) + " Thousand"

    def below_crore(x: int) -> str:
        if x < 100_000:
            return up_to_lakh(x)
        lakhs, r = divmod(x, 100_000)
        return (up_to_99(lakhs) + " Lakh " + up_to_lakh(r)).strip()

    if n < 0:
        return "Rupees (Negative) Only"
    if n >= 100_000_00:
        crores, r = divmod(n, 100_000_00)
        return ("Rupees " + below_crore(crores) + " Crore " + below_crore(r)).strip() + " Only"
    return "Rupees " + below_crore(n) + " Only"
