import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


MCB_STATEMENT = r"""MCB
THE MAURITIUS COMMERCIAL BANK LTD
Account Number : 000445566778
Account Name : JOHN DOE
Currency : MUR
Statement from 01/03/2024 to 31/03/2024
Opening Balance 5,000.00
TRANS DATE VALUE DATE DEBIT CREDIT BALANCE
01/03/202401/03/2024100.004,900.00
Cash Cheque 00012345
02/03/2024 02/03/2024 - 2,500.00 7,400.00
Inward Transfer FT24062XYZ1
\BPR
ACME TRADING CO LTD
10/03/2024 10/03/2024 400.00 7,000.00
MONTHLY RENT PAYMENT
JuicePro Transfer TT99887
MR JOHN SMITH
Page : 1 of 1
Closing Balance 7,000.00
"""

GENERIC_STATEMENT = """HSBC Bank
Account No: 987654321
Statement Period: 01/04/2024 to 30/04/2024
Opening balance: 1,000.00
DATE DESCRIPTION AMOUNT BALANCE
02/04/2024 SALARY CREDIT 2,500.00 3,500.00
05/04/2024 ATM WITHDRAWAL DR 200.00 3,300.00
10/04/2024 GROCERY STORE 150.25 3,149.75
Closing balance: 3,149.75
"""


@pytest.fixture
def mcb_text():
    return MCB_STATEMENT


@pytest.fixture
def generic_text():
    return GENERIC_STATEMENT
