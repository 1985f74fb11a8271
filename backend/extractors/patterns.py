"""
M-Pesa Pattern Set
Compiled regex patterns for Safaricom M-Pesa notification formats.

Each category exposes an ordered tuple of alternatives, most specific first.
Every pattern uses named groups so extractors never depend on group numbering:
    amount, entity, phone, account, date, time, balance, cost, outstanding,
    direction, product, scope
"""

import re

FLAGS = re.IGNORECASE | re.DOTALL

# Shared fragments
CURRENCY = r"(?:ksh|kes)\.?\s*"
AMOUNT = r"\d[\d,]*(?:\.\d+)?"
DATE = r"\d{1,2}/\d{1,2}/\d{2,4}"
TIME = r"\d{1,2}:\d{2}\s*[ap]m"
PHONE = r"\+?\d{9,12}"
REFERENCE = r"\+?\d{5,12}"

# " on 1/6/25 at 2:30 PM"
WHEN = rf"\s+on\s+(?P<date>{DATE})\s+at\s+(?P<time>{TIME})"
# " on 1/6/25" with optional " at 2:30 PM"
OPTIONAL_WHEN = rf"(?:\s+on\s+(?P<date>{DATE})(?:\s+at\s+(?P<time>{TIME}))?)?"
# End of the clause that names the counterparty
CLAUSE_END = r"(?=\s*[.,]|\s+new m-pesa balance|\s*$)"


def _compile(*patterns: str) -> tuple:
    return tuple(re.compile(p, FLAGS) for p in patterns)


# Relevance gate vocabulary (any single hit is enough)
MPESA_KEYWORDS = (
    "confirmed",
    "ksh",
    "kes",
    "new m-pesa balance",
    "transaction cost",
    "mpesa",
    "sent to",
    "received from",
    "withdraw",
    "deposit",
    "fuliza",
    "overdraft",
    "loan",
    "repay",
    "m-shwari",
    "kcb m-pesa",
    "paid to",
    "transferred",
)

# Anchors used to keep generic extractors away from more specific formats
BILL_PAYMENT_ANCHOR = re.compile(r"\bfor account\b|\bpay ?bill\b", FLAGS)
FULIZA_SEND_ANCHOR = re.compile(r"sent to (?:pay )?fuliza", FLAGS)
REPAYMENT_ANCHOR = re.compile(
    r"has been used to\s+(?:fully\s+|partially\s+)?(?:re)?pay|\brepaid\b|sent to (?:pay )?fuliza",
    FLAGS,
)
# Money moved; such a message is never a balance inquiry
MOVEMENT_ANCHOR = re.compile(r"\bsent to\b|\bwithdrawn\b|\bpaid to\b|\breceived\b", FLAGS)


SENT_PATTERNS = _compile(
    # Confirmed. Ksh500.00 sent to JOHN DOE 254712345678 on 1/6/25 at 2:30 PM.
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+sent to\s+(?P<entity>[^0-9]+?)\s*(?P<phone>{PHONE}){WHEN}",
    # Pochi La Biashara: no phone number
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+sent to\s+(?P<entity>[^0-9]+?){WHEN}",
    # Generic: optional phone, optional date/time
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+sent to\s+(?P<entity>[^0-9.]+?)(?:\s*(?P<phone>{PHONE}))?{OPTIONAL_WHEN}{CLAUSE_END}",
    # Counterparty with digits: Ksh50.00 sent to 3G SHOP 0712345678 on 1/6/25
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+sent to\s+(?P<entity>[^.]+?)(?:\s+(?P<phone>{PHONE}))?{OPTIONAL_WHEN}{CLAUSE_END}",
)

RECEIVED_PATTERNS = _compile(
    # Confirmed. You have received Ksh1,000.00 from JANE SMITH 254798765432 on 1/6/25 at 3:45 PM
    rf"confirmed\.?\s*you have received\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from\s+(?P<entity>[^0-9]+?)\s*(?P<phone>{REFERENCE}){WHEN}",
    rf"confirmed\.?\s*you have received\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from\s+(?P<entity>[^0-9]+?){WHEN}",
    rf"received\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from\s+(?P<entity>[^0-9.]+?)(?:\s*(?P<phone>{REFERENCE}))?{OPTIONAL_WHEN}{CLAUSE_END}",
    # Legacy: Ksh1,000.00 received from JANE SMITH
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+received from\s+(?P<entity>[^0-9.]+?)(?:\s*(?P<phone>{REFERENCE}))?{OPTIONAL_WHEN}{CLAUSE_END}",
)

WITHDRAWAL_PATTERNS = _compile(
    # Confirmed. Ksh200.00 withdrawn from SAFARICOM AGENT - WESTLANDS on 1/6/25 at 4:15 PM.
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+withdrawn from\s+(?P<entity>[^0-9\n]+?)(?:{WHEN})?{CLAUSE_END}",
    # Confirmed.on 1/6/25 at 4:15 PMWithdraw Ksh200.00 from 123456 - AGENT NAME New M-PESA balance
    rf"on\s+(?P<date>{DATE})\s+at\s+(?P<time>{TIME})\s*withdraw\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from\s+(?P<entity>[^.]+?){CLAUSE_END}",
    rf"withdrawn?\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from\s+(?P<entity>[^.]+?){CLAUSE_END}",
    # Agent number first: Ksh200.00 withdrawn from 012345 - SHOP AGENT on 1/6/25 at 4:15 PM
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+withdrawn from\s+(?P<entity>[^.]+?)(?:{WHEN})?{CLAUSE_END}",
)

DEPOSIT_PATTERNS = _compile(
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+deposited to\s+(?P<entity>[^0-9\n]+?)(?:{WHEN})?{CLAUSE_END}",
    # Confirmed. On 1/6/25 at 10:00 AM Give Ksh1,000.00 cash to AGENT NAME New M-PESA balance
    rf"on\s+(?P<date>{DATE})\s+at\s+(?P<time>{TIME})\s*give\s+{CURRENCY}(?P<amount>{AMOUNT})\s+cash to\s+(?P<entity>[^.]+?){CLAUSE_END}",
    rf"deposited\s+{CURRENCY}(?P<amount>{AMOUNT})",
)

BUY_GOODS_PATTERNS = _compile(
    # Confirmed. Ksh250.00 paid to NAIVAS SUPERMARKET. on 1/6/25 at 5:20 PM
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+paid to\s+(?P<entity>[^.]+?)\.\s*on\s+(?P<date>{DATE})\s+at\s+(?P<time>{TIME})",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+paid to\s+(?P<entity>[^.]+?)\s+for buy goods(?:{WHEN})?",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+paid to\s+(?P<entity>[^.]+?)(?:\s+till(?: number)?\s+\d+)?{OPTIONAL_WHEN}{CLAUSE_END}",
)

PAY_BILL_PATTERNS = _compile(
    # Confirmed. Ksh1,200.00 sent to KPLC PREPAID for account 54321 on 1/6/25 at 8:00 AM
    rf"confirmed\.?\s*{CURRENCY}(?P<amount>{AMOUNT})\s+sent to\s+(?P<entity>[^.]+?)\s+for account\s+(?P<account>[^.]+?){WHEN}",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+(?:sent|paid) to\s+(?P<entity>[^.]+?)\s+for account\s+(?P<account>[\w-]+)",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+paid to\s+(?P<entity>[^.]+?)\s+(?:(?:for|via)\s+)?pay ?bill\b",
)

AIRTIME_PATTERNS = _compile(
    rf"confirmed\.?\s*you bought\s+{CURRENCY}(?P<amount>{AMOUNT})\s+of airtime(?:\s+for\s+(?P<phone>{PHONE}))?(?:{WHEN})?",
    rf"(?:purchased|bought)\s+airtime\s+(?:of\s+)?{CURRENCY}(?P<amount>{AMOUNT})",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+(?:of\s+)?airtime",
)

SAVINGS_PATTERNS = _compile(
    # Confirmed. Ksh500.00 transferred to M-Shwari account on 1/6/25 at 9:00 AM
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+transferred (?P<direction>to|from) m-shwari (?:lock savings|account)(?:\s+account)?(?:{WHEN})?",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+has been moved from your lock savings account to your m-shwari account",
)

BANK_TRANSFER_PATTERNS = _compile(
    rf"you have transferr?ed\s+{CURRENCY}(?P<amount>{AMOUNT})\s+from your kcb m-pesa account(?:{WHEN})?",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+transferr?ed to (?:your )?kcb m-pesa account(?:{WHEN})?",
    rf"dear\s+[^,]+,\s*you have successfully opened a (?P<product>fixed|target) savings account.*?{CURRENCY}(?P<amount>{AMOUNT})",
    rf"dear\s+[^,]+,\s*you have unlocked your (?P<product>fixed|target) savings account.*?{CURRENCY}(?P<amount>{AMOUNT})",
    rf"dear\s+[^,]+,\s*your target saving top up of\s+{CURRENCY}(?P<amount>{AMOUNT})\s+has been received",
)

FULIZA_PATTERNS = _compile(
    # Confirmed. Fuliza M-PESA amount is Ksh 500.00. Access Fee charged Ksh 5.00.
    # Total Fuliza M-PESA outstanding amount is Ksh 505.00 due on 1/7/25.
    rf"fuliza m-pesa amount is\s+{CURRENCY}(?P<amount>{AMOUNT}).*?outstanding amount is\s+{CURRENCY}(?P<outstanding>{AMOUNT})",
    rf"you have received\s+{CURRENCY}(?P<amount>{AMOUNT})\s+fuliza.*?overdraft balance is\s+{CURRENCY}(?P<outstanding>{AMOUNT})",
    # Generic: the outstanding total comes from the shared scan
    rf"fuliza[^.]*?{CURRENCY}(?P<amount>{AMOUNT})",
)

FULIZA_CHARGE_PATTERNS = _compile(
    rf"{CURRENCY}(?P<cost>{AMOUNT})\s+(?:fuliza m-pesa\s+)?(?:daily\s+)?interest charged",
    rf"interest charged\s+(?:is\s+|of\s+)?{CURRENCY}(?P<cost>{AMOUNT})",
)

REPAYMENT_PATTERNS = _compile(
    # Confirmed. Ksh 300.00 from your M-PESA has been used to fully pay your outstanding Fuliza M-PESA.
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+from your m-pesa has been used to\s+(?P<scope>fully|partially)\s+pay your outstanding fuliza",
    rf"{CURRENCY}(?P<amount>{AMOUNT})\s+sent to (?:pay )?fuliza",
    rf"repaid[^.]*?{CURRENCY}(?P<amount>{AMOUNT})",
)

BALANCE_INQUIRY_PATTERNS = _compile(
    rf"your m-pesa balance[^.]*?{CURRENCY}(?P<balance>{AMOUNT})",
    rf"balance.*?{CURRENCY}(?P<balance>{AMOUNT})",
)

# Shared best-effort scans
BALANCE_SCAN_PATTERNS = _compile(
    rf"new m-pesa balance is\s*{CURRENCY}(?P<balance>{AMOUNT})",
    rf"(?<!fuliza )m-pesa balance is\s*{CURRENCY}(?P<balance>{AMOUNT})",
    # Overdraft and outstanding balances are not the wallet balance
    rf"(?<!overdraft )(?<!outstanding )(?<!fuliza m-pesa )balance is\s*{CURRENCY}(?P<balance>{AMOUNT})",
)

COST_SCAN_PATTERNS = _compile(
    rf"transaction cost,?\s*{CURRENCY}(?P<cost>{AMOUNT})",
    rf"cost,?\s*{CURRENCY}(?P<cost>{AMOUNT})",
    rf"fee charged\s*{CURRENCY}(?P<cost>{AMOUNT})",
    rf"charge,?\s*{CURRENCY}(?P<cost>{AMOUNT})",
    rf"fee,?\s*{CURRENCY}(?P<cost>{AMOUNT})",
)

OUTSTANDING_SCAN_PATTERNS = _compile(
    rf"outstanding amount is\s*{CURRENCY}(?P<outstanding>{AMOUNT})",
    rf"overdraft balance is\s*{CURRENCY}(?P<outstanding>{AMOUNT})",
    rf"outstanding (?:fuliza m-pesa )?balance is\s*{CURRENCY}(?P<outstanding>{AMOUNT})",
)

# Loan due dates are not the date of the event
DATE_SCAN = re.compile(rf"(?<!due on )(?<![\d/])(?P<date>{DATE})(?![\d/])", FLAGS)
TIME_SCAN = re.compile(rf"(?<!\d)(?P<time>{TIME})", FLAGS)

DATE_TOKEN = re.compile(r"\s*(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})\s*")
TIME_TOKEN = re.compile(r"\s*(\d{1,2}):(\d{2})\s*([ap]m)\s*", re.IGNORECASE)
