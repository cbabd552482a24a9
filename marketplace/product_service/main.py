# marketplace/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


#prices in minor units, seller_id = sales agent who listed the product
PRODUCTS = {
    1: {"id": 1, "name": "Mechanical Keyboard", "price": 100000, "seller_id": 10, "stock": 25},
    2: {"id": 2, "name": "Wireless Mouse", "price": 50000, "seller_id": 20, "stock": 40},
    3: {"id": 3, "name": "27in Monitor", "price": 899000, "seller_id": 20, "stock": 5},
    4: {"id": 4, "name": "USB-C Hub", "price": 45000, "seller_id": 30, "stock": 0},
    5: {"id": 5, "name": "Desk Lamp", "price": 120000, "seller_id": None, "stock": 12},
}

@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
