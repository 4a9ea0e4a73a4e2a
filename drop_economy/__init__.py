"""포럼 드롭 이코노미: 보상 드롭, 소유권 원장, 리액션, 거래"""
