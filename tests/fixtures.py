"""Frozen registry exports and BlueZ info files shared by the tests."""

LTK_HEX = "hex:c2,90,19,3b,1e,be,c7,d0,18,c6,4f,e9,67,ad,6b,d5"
LTK_KEY = "C290193B1EBEC7D018C64FE967AD6BD5"

IRK_HEX = "hex:fc,ea,f8,3e,e3,ee,ee,d0,96,61,96,2a,6e,b0,33,8a"
IRK_KEY = "FCEAF83EE3EEEED09661962A6EB0338A"

CSRK_HEX = "hex:01,23,45,67,89,ab,cd,ef,01,23,45,67,89,ab,cd,ef"
CSRK_KEY = "0123456789ABCDEF0123456789ABCDEF"

LINK_KEY_KEY = "786DC4332D385A48C4E718FE0B84FF20"

ADAPTER_MAC = "C0:FB:F9:60:1C:13"
LE_DEVICE_MAC = "C8:29:0A:11:F4:C1"
CLASSIC_DEVICE_MAC = "00:1A:7D:DA:71:0B"

REGED_EXPORT = r"""
[HKEY_LOCAL_MACHINE\SYSTEM\ControlSet001\Services\BTHPORT\Parameters\Keys]

[HKEY_LOCAL_MACHINE\SYSTEM\ControlSet001\Services\BTHPORT\Parameters\Keys\c0fbf9601c13]
"MasterIRK"=hex:aa,bb,cc,dd,ee,ff,00,11,22,33,44,55,66,77,88,99
"001a7dda710b"=hex:78,6d,c4,33,2d,38,5a,48,c4,e7,18,fe,0b,84,ff,20
[HKEY_LOCAL_MACHINE\SYSTEM\ControlSet001\Services\BTHPORT\Parameters\Keys\c0fbf9601c13\c8290a11f4c1]
"LTK"=hex:c2,90,19,3b,1e,be,c7,d0,18,c6,4f,e9,67,ad,6b,d5
"KeyLength"=dword:00000000
"ERand"=hex(b):39,30,00,00,00,00,00,00
"EDIV"=dword:00012345
"AuthReq"=dword:0000002d
"AddressType"=dword:00000001
"Address"=hex(b):c1,f4,11,0a,29,c8,00,00
"IRK"=hex:fc,ea,f8,3e,e3,ee,ee,d0,96,61,96,2a,6e,b0,33,8a
"CSRK"=hex:01,23,45,67,89,ab,cd,ef,01,23,45,67,89,ab,cd,ef
"""

LE_INFO = """[General]
Name=Headphones
AddressType=public
SupportedTechnologies=LE;
Trusted=true
Blocked=false
Services=0000180f-0000-1000-8000-00805f9b34fb;

[IdentityResolvingKey]
Key=00000000000000000000000000000000

[LocalSignatureKey]
Key=11111111111111111111111111111111
Counter=0
Authenticated=false

[LongTermKey]
Key=22222222222222222222222222222222
Authenticated=2
EncSize=16
EDiv=999
Rand=777

[PeripheralLongTermKey]
Key=33333333333333333333333333333333
Authenticated=2
EncSize=16
EDiv=0
Rand=0

[ConnectionParameters]
MinInterval=6
MaxInterval=9
Latency=44
Timeout=216
"""

CLASSIC_INFO = """[General]
Name=Keyboard
Class=0x002540
SupportedTechnologies=BR/EDR;
Trusted=true
Blocked=false

[LinkKey]
Key=00000000000000000000000000000000
Type=4
PINLength=0

[DeviceID]
Source=2
Vendor=1452
Product=599
Version=1
"""
