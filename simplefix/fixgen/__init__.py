"""FIX XML dictionary reading, field rules, type casting and code templates."""